"""
Domain entities for authors and books.

Identifiers are assigned when an entity is created and cannot be reassigned.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Book(BaseModel):
    """A book written by exactly one author."""
    id: UUID = Field(default_factory=uuid4, frozen=True, description="Book identifier")
    title: str = Field(..., max_length=100, description="Book title")
    description: Optional[str] = Field(None, max_length=500, description="Book description")
    author_id: UUID = Field(..., description="Identifier of the owning author")


class Author(BaseModel):
    """An author and, when created together, the author's books."""
    id: UUID = Field(default_factory=uuid4, frozen=True, description="Author identifier")
    first_name: str = Field(..., max_length=50, description="First name")
    last_name: str = Field(..., max_length=50, description="Last name")
    date_of_birth: date = Field(..., description="Date of birth")
    date_of_death: Optional[date] = Field(None, description="Date of death")
    genre: str = Field(..., max_length=50, description="Main genre")
    books: List[Book] = Field(default_factory=list, description="Books created with the author")
