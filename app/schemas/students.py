from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class StudentEnrollRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    classroom_id: str = Field(..., min_length=1, max_length=36)
    school_id: str | None = Field(default=None, max_length=36)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, value: str) -> str:
        return value.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class StudentOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    school_id: str
    classroom_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    model_config = {"from_attributes": True}
