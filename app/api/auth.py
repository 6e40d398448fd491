from fastapi import APIRouter, Depends, status

from app.api.deps import get_auth_service, get_current_claim
from app.core.claims import FullClaim
from app.schemas.auth import (
    ApiKeyCreated,
    ApiKeyCreateRequest,
    ApiKeyOut,
    ClaimOut,
    LoginRequest,
    MfaActivateRequest,
    MfaSetupOut,
    MfaStatusOut,
    MfaValidateRequest,
    TokenResponse,
)
from app.schemas.common import Envelope, MessageResponse
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    return auth_service.login(payload.email, payload.password)


@router.post("/mfa/validate", response_model=TokenResponse)
def mfa_validate(payload: MfaValidateRequest, auth_service: AuthService = Depends(get_auth_service)):
    return auth_service.validate_mfa(payload.pre_token, payload.totp_token)


@router.post("/mfa/setup", response_model=Envelope[MfaSetupOut])
def mfa_setup(
    claim: FullClaim = Depends(get_current_claim),
    auth_service: AuthService = Depends(get_auth_service),
):
    return Envelope(data=auth_service.setup_mfa(claim.subject_id))


@router.post("/mfa/activate", response_model=Envelope[MfaStatusOut])
def mfa_activate(
    payload: MfaActivateRequest,
    claim: FullClaim = Depends(get_current_claim),
    auth_service: AuthService = Depends(get_auth_service),
):
    enabled = auth_service.activate_mfa(claim.subject_id, payload.token)
    return Envelope(data=MfaStatusOut(mfa_enabled=enabled))


@router.get("/me", response_model=Envelope[ClaimOut])
def me(claim: FullClaim = Depends(get_current_claim)):
    return Envelope(data=ClaimOut(subject_id=claim.subject_id, role=claim.role.value, school_id=claim.school_id))


@router.get("/api-keys", response_model=Envelope[list[ApiKeyOut]])
def list_api_keys(
    claim: FullClaim = Depends(get_current_claim),
    auth_service: AuthService = Depends(get_auth_service),
):
    return Envelope(data=auth_service.list_api_keys(claim.subject_id))


@router.post("/api-keys", response_model=Envelope[ApiKeyCreated], status_code=status.HTTP_201_CREATED)
def create_api_key(
    payload: ApiKeyCreateRequest,
    claim: FullClaim = Depends(get_current_claim),
    auth_service: AuthService = Depends(get_auth_service),
):
    return Envelope(data=auth_service.create_api_key(claim.subject_id, payload.name))


@router.delete("/api-keys/{key_id}", response_model=MessageResponse)
def revoke_api_key(
    key_id: str,
    claim: FullClaim = Depends(get_current_claim),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.revoke_api_key(claim.subject_id, key_id)
    return MessageResponse(message="API key revoked")
