from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """`{success, data, message}` envelope wrapped around every response."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool

class Page(BaseModel, Generic[T]):
    items: List[T]
    pagination: PaginationMeta
