"""
Mapping between domain entities and public representations.

The mapper is built once when the application is created and handed to the
routes that need it; it holds no global state.
"""

from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Union
from uuid import UUID

from library_api.entities import Author, Book
from library_api.models import (
    AuthorDto, AuthorForCreationDto, AuthorForCreationWithDateOfDeathDto,
    BookDto, BookForCreationDto, BookForUpdateDto
)
from querying.property_mapping import PropertyMappingService, PropertyMappingValue

AUTHOR_PROPERTY_MAPPING = {
    "Id": PropertyMappingValue(["id"]),
    "Genre": PropertyMappingValue(["genre"]),
    "Age": PropertyMappingValue(["date_of_birth"], revert=True),
    "Name": PropertyMappingValue(["first_name", "last_name"]),
}


def create_property_mapping_service() -> PropertyMappingService:
    """Property mappings for every sortable resource."""
    service = PropertyMappingService()
    service.register(AuthorDto, Author, AUTHOR_PROPERTY_MAPPING)
    return service


def get_current_age(date_of_birth: date, date_of_death: Optional[date] = None, today: Optional[date] = None) -> int:
    """
    Age in whole years, counted up to the date of death when there is one.
    """
    end = date_of_death or today or datetime.now(timezone.utc).date()
    age = end.year - date_of_birth.year
    if (end.month, end.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class LibraryMapper:
    """Entity <-> DTO projections, including computed name and age."""

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or (lambda: datetime.now(timezone.utc).date())

    def author_to_dto(self, author: Author) -> AuthorDto:
        return AuthorDto(
            id=author.id,
            name=f"{author.first_name} {author.last_name}",
            age=get_current_age(author.date_of_birth, author.date_of_death, self._today()),
            genre=author.genre
        )

    def authors_to_dtos(self, authors: Iterable[Author]) -> List[AuthorDto]:
        return [self.author_to_dto(author) for author in authors]

    def book_to_dto(self, book: Book) -> BookDto:
        return BookDto(
            id=book.id,
            title=book.title,
            description=book.description,
            author_id=book.author_id
        )

    def books_to_dtos(self, books: Iterable[Book]) -> List[BookDto]:
        return [self.book_to_dto(book) for book in books]

    def author_from_creation(
        self,
        dto: Union[AuthorForCreationDto, AuthorForCreationWithDateOfDeathDto]
    ) -> Author:
        """New author entity with a fresh id; nested books get ids of their own."""
        author = Author(
            first_name=dto.first_name,
            last_name=dto.last_name,
            date_of_birth=dto.date_of_birth,
            date_of_death=getattr(dto, "date_of_death", None),
            genre=dto.genre
        )
        for book in getattr(dto, "books", []):
            author.books.append(self.book_from_creation(book, author.id))
        return author

    def book_from_creation(
        self,
        dto: Union[BookForCreationDto, BookForUpdateDto],
        author_id: UUID,
        book_id: Optional[UUID] = None
    ) -> Book:
        """New book entity; ``book_id`` lets the client choose the id (upsert)."""
        values = {"title": dto.title, "description": dto.description, "author_id": author_id}
        if book_id is not None:
            values["id"] = book_id
        return Book(**values)

    def book_to_update_dto(self, book: Book) -> BookForUpdateDto:
        return BookForUpdateDto.model_construct(title=book.title, description=book.description)

    def apply_book_update(self, dto: BookForUpdateDto, book: Book) -> Book:
        """Copy the updatable fields onto an existing book."""
        book.title = dto.title
        book.description = dto.description
        return book
