"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, validator


def _validate_year(v):
    if v is not None and v > datetime.utcnow().year + 1:
        raise ValueError('published_year cannot be in the future')
    return v


class BookCreate(BaseModel):
    """Request body for adding a book."""
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Book author")
    genre: Optional[str] = Field(None, description="Book genre")
    published_year: Optional[int] = Field(None, ge=0, description="Year of first publication")

    @validator('title', 'author')
    def validate_not_blank(cls, v):
        """Ensure required text fields are not just whitespace."""
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()

    @validator('published_year')
    def validate_published_year(cls, v):
        """Ensure the publication year is not in the future."""
        return _validate_year(v)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "genre": "Fantasy",
                "published_year": 1937
            }
        }


class BookUpdate(BaseModel):
    """Request body for updating a book. Only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, description="Book title")
    author: Optional[str] = Field(None, min_length=1, description="Book author")
    genre: Optional[str] = Field(None, description="Book genre")
    published_year: Optional[int] = Field(None, ge=0, description="Year of first publication")

    @validator('title', 'author')
    def validate_not_blank(cls, v):
        """Ensure provided text fields are neither null nor whitespace."""
        if v is None:
            raise ValueError('must not be null')
        if not v.strip():
            raise ValueError('must not be blank')
        return v.strip()

    @validator('published_year')
    def validate_published_year(cls, v):
        """Ensure the publication year is not in the future."""
        return _validate_year(v)


class BookResponse(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    genre: Optional[str] = Field(None, description="Book genre")
    published_year: Optional[int] = Field(None, description="Year of first publication")
    created_at: Optional[str] = Field(None, description="Creation timestamp")
    updated_at: Optional[str] = Field(None, description="Last update timestamp")


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[BookResponse] = Field(..., description="List of books")
    total: int = Field(..., description="Total number of books")
    page: int = Field(..., description="Current page number")
    limit: int = Field(..., description="Number of books per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there is a next page")
    has_prev: bool = Field(..., description="Whether there is a previous page")


class BookCreatedResponse(BaseModel):
    """Response model for single and bulk inserts."""
    message: str = Field(..., description="Outcome message")
    data: Union[BookResponse, List[BookResponse]] = Field(..., description="Stored book or books")


class SearchResponse(BaseModel):
    """Response model for fuzzy search, best match first."""
    results: List[BookResponse] = Field(..., description="Matched books in rank order")
    total: int = Field(..., description="Books that matched before truncation")


class MessageResponse(BaseModel):
    """Plain message response model."""
    message: str = Field(..., description="Outcome message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
