from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.claims import Role


class UserCreateRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=256)
    role: Role = Role.SCHOOL_ADMIN
    school_id: str | None = Field(default=None, max_length=36)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(BaseModel):
    id: str
    email: str
    role: str
    school_id: str | None
    mfa_enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}
