from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class Envelope(BaseModel, Generic[T]):
    ok: bool = True
    data: T


class MessageResponse(BaseModel):
    ok: bool = True
    message: str


class ErrorResponse(BaseModel):
    ok: bool = False
    code: str
    message: str
    details: list[dict] | None = None


class Page(BaseModel, Generic[T]):
    """Keyset page; serialized as ``{items, nextCursor, hasMore}``."""

    model_config = {"populate_by_name": True}

    items: list[T]
    next_cursor: str | None = Field(alias="nextCursor")
    has_more: bool = Field(alias="hasMore")
