from typing import Callable

import jwt
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.claims import FullClaim, PreAuthClaim, Role
from app.core.errors import Conflict, NotFound, Unauthenticated, ValidationFailed
from app.core.security import (
    create_access_token,
    create_pre_auth_token,
    decode_token,
    generate_api_key,
    generate_totp_secret,
    hash_api_key,
    totp_provisioning_uri,
    verify_password,
    verify_totp,
)
from app.models.api_key import ApiKey
from app.models.common import utcnow
from app.models.user import User
from app.schemas.auth import ApiKeyCreated, ApiKeyOut, MfaSetupOut, TokenResponse
from app.services.background import BackgroundRunner


def claim_for(user: User) -> FullClaim:
    return FullClaim(subject_id=user.id, role=Role(user.role), school_id=user.school_id)


class AuthService:
    def __init__(self, db: Session, runner: BackgroundRunner, session_factory: Callable[[], Session]) -> None:
        self.db = db
        self.runner = runner
        self.session_factory = session_factory

    def login(self, email: str, password: str) -> TokenResponse:
        user = self.db.scalar(select(User).where(User.email == email.strip().lower()))
        if not user or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid credentials", code="INVALID_CREDENTIALS")

        if user.mfa_enabled:
            return TokenResponse(mfa_required=True, pre_token=create_pre_auth_token(user.id))
        return TokenResponse(access_token=create_access_token(claim_for(user)))

    def validate_mfa(self, pre_token: str, code: str) -> TokenResponse:
        try:
            claim = decode_token(pre_token)
        except jwt.InvalidTokenError as exc:
            raise Unauthenticated("Invalid or expired token", code="INVALID_TOKEN") from exc
        if not isinstance(claim, PreAuthClaim):
            raise Unauthenticated("Invalid or expired token", code="INVALID_TOKEN")

        user = self._get_user(claim.subject_id)
        if not user or not user.mfa_enabled or not user.mfa_secret:
            raise Unauthenticated("Invalid or expired token", code="INVALID_TOKEN")
        if not verify_totp(user.mfa_secret, code):
            raise Unauthenticated("Invalid one-time code", code="INVALID_TOTP")
        return TokenResponse(access_token=create_access_token(claim_for(user)))

    def setup_mfa(self, user_id: str) -> MfaSetupOut:
        user = self._require_user(user_id)
        if user.mfa_enabled:
            raise Conflict("MFA is already enabled", code="MFA_ALREADY_ENABLED")
        secret = generate_totp_secret()
        user.mfa_secret = secret
        self.db.commit()
        return MfaSetupOut(secret=secret, otpauth_url=totp_provisioning_uri(secret, user.email))

    def activate_mfa(self, user_id: str, code: str) -> bool:
        user = self._require_user(user_id)
        if not user.mfa_secret:
            raise ValidationFailed("MFA has not been set up", code="MFA_NOT_SETUP")
        if not verify_totp(user.mfa_secret, code):
            raise Unauthenticated("Invalid one-time code", code="INVALID_TOTP")
        user.mfa_enabled = True
        self.db.commit()
        return True

    def authenticate_api_key(self, raw_key: str) -> FullClaim:
        if not raw_key:
            raise Unauthenticated("Invalid API key", code="INVALID_API_KEY")
        key_hash = hash_api_key(raw_key)
        row = self.db.execute(
            select(ApiKey.id, User).join(User, ApiKey.user_id == User.id).where(ApiKey.key_hash == key_hash)
        ).first()
        if row is None:
            raise Unauthenticated("Invalid API key", code="INVALID_API_KEY")

        key_id, user = row
        self.runner.submit("api-key-last-used", self._touch_api_key, key_id)
        return claim_for(user)

    def create_api_key(self, user_id: str, name: str) -> ApiKeyCreated:
        self._require_user(user_id)
        raw_key = generate_api_key()
        api_key = ApiKey(user_id=user_id, name=name, key_hash=hash_api_key(raw_key))
        self.db.add(api_key)
        self.db.commit()
        return ApiKeyCreated(id=api_key.id, name=api_key.name, key=raw_key)

    def list_api_keys(self, user_id: str) -> list[ApiKeyOut]:
        rows = self.db.scalars(
            select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.created_at.asc(), ApiKey.id.asc())
        ).all()
        return [ApiKeyOut.model_validate(row) for row in rows]

    def revoke_api_key(self, user_id: str, key_id: str) -> None:
        api_key = self.db.scalar(select(ApiKey).where(ApiKey.id == key_id, ApiKey.user_id == user_id))
        if not api_key:
            raise NotFound("Key not found")
        self.db.delete(api_key)
        self.db.commit()

    def _touch_api_key(self, key_id: str) -> None:
        with self.session_factory() as db:
            db.execute(update(ApiKey).where(ApiKey.id == key_id).values(last_used=utcnow()))
            db.commit()

    def _get_user(self, user_id: str) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def _require_user(self, user_id: str) -> User:
        user = self._get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return user
