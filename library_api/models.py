"""
API models and schemas for the FastAPI application.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

MAX_PAGE_SIZE = 10


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either casing on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthorDto(CamelModel):
    """Author response model for API."""
    id: UUID = Field(..., description="Unique author identifier")
    name: str = Field(..., description="First and last name")
    age: int = Field(..., description="Age in years (at death when deceased)")
    genre: str = Field(..., description="Main genre")


class BookDto(CamelModel):
    """Book response model for API."""
    id: UUID = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    description: Optional[str] = Field(None, description="Book description")
    author_id: UUID = Field(..., description="Author identifier")


class BookForManipulationDto(CamelModel):
    """Fields shared by book creation and update."""
    title: str = Field(..., max_length=100, description="Book title")
    description: Optional[str] = Field(None, max_length=500, description="Book description")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v, info: ValidationInfo):
        """A description that repeats the title is not a description."""
        if v is not None and v == info.data.get("title"):
            raise ValueError("Please enter a proper description for the book.")
        return v


class BookForCreationDto(BookForManipulationDto):
    """Request body for creating a book."""


class BookForUpdateDto(BookForManipulationDto):
    """Request body for replacing a book; the description is required."""
    description: str = Field(..., max_length=500, description="Book description")


class AuthorForCreationDto(CamelModel):
    """Request body for creating an author, optionally with books."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    genre: str = Field(..., min_length=1, max_length=50)
    books: List[BookForCreationDto] = Field(default_factory=list)


class AuthorForCreationWithDateOfDeathDto(CamelModel):
    """Request body for creating an author with a date of death."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date
    date_of_death: Optional[date] = None
    genre: str = Field(..., min_length=1, max_length=50)


class LinkDto(BaseModel):
    """Hypermedia link describing an action available on a resource."""
    model_config = ConfigDict(frozen=True)

    href: str = Field(..., description="Target URI")
    rel: str = Field(..., description="Relation name")
    method: str = Field(..., description="HTTP method")


class LinkedCollectionResource(BaseModel):
    """Collection body returned for the HATEOAS media type."""
    value: List[Dict[str, Any]] = Field(..., description="Shaped items with their links")
    links: List[LinkDto] = Field(..., description="Collection links")


class AuthorsResourceParameters(BaseModel):
    """Query parameters for author listing."""
    page_number: int = Field(1, ge=1, description="Page number")
    page_size: int = Field(MAX_PAGE_SIZE, ge=1, description="Items per page (at most 10)")
    genre: Optional[str] = Field(None, description="Filter by genre")
    search_query: Optional[str] = Field(None, description="Search genre, first and last name")
    order_by: str = Field("Name", description="Comma-separated sort clauses")
    fields: Optional[str] = Field(None, description="Comma-separated fields to return")

    @field_validator("page_size")
    @classmethod
    def clamp_page_size(cls, v):
        """Page size never exceeds the maximum."""
        return min(v, MAX_PAGE_SIZE)


class PaginationMetadata(CamelModel):
    """Pagination metadata returned in the X-Pagination header."""
    total_count: int
    page_size: int
    current_page: int
    total_pages: int
    previous_page_link: Optional[str] = None
    next_page_link: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class ValidationErrorResponse(ErrorResponse):
    """Error response carrying per-field validation messages."""
    errors: Dict[str, List[str]] = Field(default_factory=dict, description="Messages by field")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
