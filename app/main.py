import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from app.api.router import api_router
from app.core.claims import Role
from app.core.config import get_settings
from app.core.errors import AppError
from app.core.security import hash_password
from app.db.session import get_session_factory
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.services.audit import AuditService
from app.services.background import BackgroundRunner
from app.services.cache import build_cache

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str, details: list | None = None) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump(exclude_none=True)))


def _bootstrap_admin() -> None:
    settings = get_settings()
    email = settings.bootstrap_admin_email.strip().lower()
    with get_session_factory()() as db:
        existing = db.scalar(select(User).where(User.email == email))
        if not existing:
            db.add(
                User(
                    email=email,
                    password_hash=hash_password(settings.bootstrap_admin_password),
                    role=Role.SUPER_ADMIN.value,
                )
            )
            db.commit()
            logger.info("Bootstrap super admin %s created", email)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(_: Request, exc: AppError):
        return _error(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg", "")}
            for error in exc.errors()
        ]
        return _error(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Request validation failed", details)

    @app.exception_handler(HTTPException)
    async def handle_http_exception(_: Request, exc: HTTPException):
        code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR"
        return _error(exc.status_code, code, str(exc.detail))

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(_: Request, exc: IntegrityError):
        logger.info("Integrity error: %s", exc.orig)
        return _error(status.HTTP_409_CONFLICT, "DUPLICATE_KEY", "Duplicate value")

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception):
        logger.exception("Unhandled error", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app() -> FastAPI:
    settings = get_settings()
    logging.getLogger("app").setLevel(settings.log_level.upper())

    runner = BackgroundRunner(max_workers=settings.background_workers)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.auto_create_admin:
            _bootstrap_admin()
        yield
        runner.flush()
        runner.shutdown()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.runner = runner
    app.state.cache = build_cache(settings)
    app.state.audit = AuditService(lambda: get_session_factory()(), runner)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()
