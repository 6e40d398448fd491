from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(BaseModel):
    ok: bool = True
    mfa_required: bool = False
    access_token: str | None = None
    pre_token: str | None = None
    token_type: str = "bearer"


class MfaValidateRequest(BaseModel):
    pre_token: str = Field(..., min_length=1)
    totp_token: str = Field(..., pattern=r"^\d{6}$")


class MfaActivateRequest(BaseModel):
    token: str = Field(..., pattern=r"^\d{6}$")


class MfaSetupOut(BaseModel):
    secret: str
    otpauth_url: str


class MfaStatusOut(BaseModel):
    mfa_enabled: bool


class ApiKeyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class ApiKeyCreated(BaseModel):
    id: str
    name: str
    key: str


class ApiKeyOut(BaseModel):
    id: str
    name: str
    last_used: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ClaimOut(BaseModel):
    subject_id: str
    role: str
    school_id: str | None
