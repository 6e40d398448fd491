import base64
import hashlib
import hmac
import os
import secrets
import struct
import time
from datetime import UTC, datetime, timedelta
from urllib.parse import quote, urlencode

import jwt

from app.core.claims import Claim, FullClaim, PreAuthClaim, Role
from app.core.config import get_settings


PBKDF2_ITERATIONS = 120_000

ACCESS_TOKEN_TYPE = "access"
PRE_AUTH_TOKEN_TYPE = "pre_auth"

API_KEY_BYTES = 32

TOTP_STEP_SECONDS = 30
TOTP_DIGITS = 6
TOTP_SECRET_BYTES = 20


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return "pbkdf2_sha256${iterations}${salt}${digest}".format(
        iterations=PBKDF2_ITERATIONS,
        salt=base64.urlsafe_b64encode(salt).decode("ascii"),
        digest=base64.urlsafe_b64encode(digest).decode("ascii"),
    )


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, iterations, salt_b64, digest_b64 = password_hash.split("$", 3)
    except ValueError:
        return False

    if algo != "pbkdf2_sha256":
        return False

    salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
    expected = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations))
    return hmac.compare_digest(actual, expected)


def _encode(payload: dict, expires_minutes: int) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        **payload,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(claim: FullClaim, expires_minutes: int | None = None) -> str:
    settings = get_settings()
    return _encode(
        {
            "sub": claim.subject_id,
            "typ": ACCESS_TOKEN_TYPE,
            "role": claim.role.value,
            "school_id": claim.school_id,
        },
        expires_minutes or settings.jwt_expire_minutes,
    )


def create_pre_auth_token(subject_id: str) -> str:
    settings = get_settings()
    return _encode(
        {"sub": subject_id, "typ": PRE_AUTH_TOKEN_TYPE, "mfa_pending": True},
        settings.pre_auth_expire_minutes,
    )


def decode_token(token: str) -> Claim:
    """Verify signature and expiry and return the claim the token carries.

    Raises ``jwt.InvalidTokenError`` for anything that is not a well-formed
    token issued by this service.
    """
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )

    subject_id = payload.get("sub")
    token_type = payload.get("typ")
    if token_type == PRE_AUTH_TOKEN_TYPE and payload.get("mfa_pending") is True:
        return PreAuthClaim(subject_id=subject_id)

    if token_type != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Unknown token type")
    try:
        role = Role(payload.get("role"))
    except ValueError as exc:
        raise jwt.InvalidTokenError("Unknown role") from exc

    school_id = payload.get("school_id")
    return FullClaim(
        subject_id=subject_id,
        role=role,
        school_id=str(school_id) if school_id else None,
    )


def generate_api_key() -> str:
    return secrets.token_hex(API_KEY_BYTES)


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def generate_totp_secret() -> str:
    return base64.b32encode(os.urandom(TOTP_SECRET_BYTES)).decode("ascii").rstrip("=")


def _b32decode(secret: str) -> bytes:
    normalized = secret.strip().replace(" ", "").upper()
    padding = "=" * (-len(normalized) % 8)
    return base64.b32decode(normalized + padding)


def totp_code(secret: str, for_time: float | None = None) -> str:
    """RFC 6238 code (HMAC-SHA1, 30 second step, 6 digits)."""
    moment = time.time() if for_time is None else for_time
    counter = int(moment // TOTP_STEP_SECONDS)
    digest = hmac.new(_b32decode(secret), struct.pack(">Q", counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    value = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return str(value % (10**TOTP_DIGITS)).zfill(TOTP_DIGITS)


def verify_totp(secret: str, code: str, window: int = 1, for_time: float | None = None) -> bool:
    if not code or len(code) != TOTP_DIGITS or not code.isdigit():
        return False
    moment = time.time() if for_time is None else for_time
    for step in range(-window, window + 1):
        candidate = totp_code(secret, moment + step * TOTP_STEP_SECONDS)
        if hmac.compare_digest(candidate, code):
            return True
    return False


def totp_provisioning_uri(secret: str, account_name: str) -> str:
    settings = get_settings()
    label = quote(f"{settings.totp_issuer}:{account_name}")
    query = urlencode({"secret": secret, "issuer": settings.totp_issuer})
    return f"otpauth://totp/{label}?{query}"
