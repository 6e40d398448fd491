from datetime import datetime

from pydantic import BaseModel, Field


class SchoolCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=5, max_length=200)
    admin_id: str = Field(..., min_length=1, max_length=36)


class SchoolUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    address: str | None = Field(default=None, min_length=5, max_length=200)


class SchoolOut(BaseModel):
    id: str
    name: str
    address: str
    admin_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    model_config = {"from_attributes": True}
