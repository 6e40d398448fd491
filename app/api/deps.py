import jwt
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from app.core.authorization import check_role
from app.core.claims import Claim, FullClaim, Role
from app.core.errors import Unauthenticated
from app.core.security import decode_token
from app.db.session import get_db, get_session_factory
from app.services.audit import AuditService
from app.services.auth import AuthService
from app.services.background import BackgroundRunner
from app.services.cache import EntityCache
from app.services.classrooms import ClassroomService
from app.services.schools import SchoolService
from app.services.students import StudentService
from app.services.users import UserService

# Accepts both "Bearer <jwt>" and "ApiKey <raw key>"
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

ALL_ADMINS = (Role.SUPER_ADMIN, Role.SCHOOL_ADMIN)


def new_session() -> Session:
    return get_session_factory()()


def get_cache(request: Request) -> EntityCache:
    return request.app.state.cache


def get_runner(request: Request) -> BackgroundRunner:
    return request.app.state.runner


def get_audit(request: Request) -> AuditService:
    return request.app.state.audit


def get_auth_service(
    db: Session = Depends(get_db),
    runner: BackgroundRunner = Depends(get_runner),
) -> AuthService:
    return AuthService(db, runner, new_session)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_school_service(
    db: Session = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
    audit: AuditService = Depends(get_audit),
) -> SchoolService:
    return SchoolService(db, cache, audit)


def get_classroom_service(
    db: Session = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
    audit: AuditService = Depends(get_audit),
) -> ClassroomService:
    return ClassroomService(db, cache, audit)


def get_student_service(
    db: Session = Depends(get_db),
    cache: EntityCache = Depends(get_cache),
    audit: AuditService = Depends(get_audit),
) -> StudentService:
    return StudentService(db, cache, audit)


def get_claim(
    authorization: str | None = Depends(authorization_header),
    auth_service: AuthService = Depends(get_auth_service),
) -> Claim:
    if not authorization:
        raise Unauthenticated("Missing or unsupported Authorization header")

    scheme, _, credentials = authorization.partition(" ")
    credentials = credentials.strip()
    if scheme.lower() == "bearer" and credentials:
        try:
            return decode_token(credentials)
        except jwt.InvalidTokenError as exc:
            raise Unauthenticated("Invalid or expired token", code="INVALID_TOKEN") from exc

    if scheme.lower() == "apikey":
        return auth_service.authenticate_api_key(credentials)

    raise Unauthenticated("Missing or unsupported Authorization header")


def get_current_claim(claim: Claim = Depends(get_claim)) -> FullClaim:
    if not isinstance(claim, FullClaim):
        raise Unauthenticated("Multi-factor verification is required", code="MFA_REQUIRED")
    return claim


def require_roles(*roles: Role):
    """Dependency factory enforcing the route's allowed-role set."""

    def _checker(claim: FullClaim = Depends(get_current_claim)) -> FullClaim:
        check_role(claim, roles)
        return claim

    return _checker
