from datetime import datetime

from pydantic import BaseModel, Field, TypeAdapter


class ClassroomCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., ge=1, le=500)
    school_id: str | None = Field(default=None, max_length=36)


class ClassroomUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1, le=500)
    school_id: str | None = Field(default=None, max_length=36)


class ClassroomOut(BaseModel):
    id: str
    name: str
    school_id: str
    capacity: int
    student_count: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    model_config = {"from_attributes": True}


ClassroomList = TypeAdapter(list[ClassroomOut])
