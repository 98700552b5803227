"""
Tests for entity/DTO mapping and request models.
"""

from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError

from library_api.entities import Author, Book
from library_api.mappers import get_current_age
from library_api.models import (
    AuthorForCreationDto, AuthorForCreationWithDateOfDeathDto, AuthorsResourceParameters,
    BookForCreationDto, BookForUpdateDto, LinkDto
)


class TestGetCurrentAge:
    """Test get_current_age."""

    def test_before_and_after_birthday(self):
        assert get_current_age(date(1960, 11, 10), today=date(2024, 11, 9)) == 63
        assert get_current_age(date(1960, 11, 10), today=date(2024, 11, 10)) == 64

    def test_counts_to_date_of_death(self):
        assert get_current_age(date(1929, 10, 21), date(2018, 1, 22), today=date(2024, 6, 1)) == 88


class TestLibraryMapper:
    """Test LibraryMapper."""

    def test_author_to_dto(self, mapper):
        author = Author(first_name="Neil", last_name="Gaiman", date_of_birth=date(1960, 11, 10), genre="Fantasy")
        dto = mapper.author_to_dto(author)
        assert dto.id == author.id
        assert dto.name == "Neil Gaiman"
        assert dto.age == 63
        assert dto.model_dump(by_alias=True) == {"id": author.id, "name": "Neil Gaiman", "age": 63, "genre": "Fantasy"}

    def test_deceased_author(self, mapper, sample_author_with_books):
        assert mapper.author_to_dto(sample_author_with_books).age == 88

    def test_author_from_creation_with_books(self, mapper):
        dto = AuthorForCreationDto.model_validate({
            "firstName": "Jo",
            "lastName": "Nesbo",
            "dateOfBirth": "1960-03-29",
            "genre": "Thriller",
            "books": [{"title": "The Snowman", "description": "Harry Hole #7"}],
        })
        author = mapper.author_from_creation(dto)
        assert author.date_of_death is None
        assert len(author.books) == 1
        assert author.books[0].author_id == author.id

    def test_author_from_creation_with_date_of_death(self, mapper):
        dto = AuthorForCreationWithDateOfDeathDto(
            first_name="Terry", last_name="Pratchett", date_of_birth=date(1948, 4, 28),
            date_of_death=date(2015, 3, 12), genre="Fantasy"
        )
        author = mapper.author_from_creation(dto)
        assert author.date_of_death == date(2015, 3, 12)
        assert author.books == []

    def test_book_from_creation_with_chosen_id(self, mapper):
        author_id, book_id = uuid4(), uuid4()
        book = mapper.book_from_creation(BookForCreationDto(title="Cujo"), author_id, book_id=book_id)
        assert book.id == book_id
        assert book.author_id == author_id
        assert book.description is None

    def test_book_to_dto_uses_camel_case(self, mapper):
        book = Book(title="It", description="Pennywise.", author_id=uuid4())
        assert set(mapper.book_to_dto(book).model_dump(by_alias=True)) == {"id", "title", "description", "authorId"}

    def test_update_round_trip(self, mapper):
        book = Book(title="It", description="Pennywise.", author_id=uuid4())
        update = mapper.book_to_update_dto(book)
        assert update.model_dump() == {"title": "It", "description": "Pennywise."}

        mapper.apply_book_update(BookForUpdateDto(title="It (1986)", description="Derry, Maine."), book)
        assert book.title == "It (1986)"
        assert book.description == "Derry, Maine."


class TestModels:
    """Test request model validation."""

    def test_page_size_clamped(self):
        assert AuthorsResourceParameters(page_size=100).page_size == 10
        assert AuthorsResourceParameters().order_by == "Name"

    def test_page_number_must_be_positive(self):
        with pytest.raises(ValidationError):
            AuthorsResourceParameters(page_number=0)

    def test_description_must_differ_from_title(self):
        with pytest.raises(ValidationError) as exc_info:
            BookForCreationDto(title="Same", description="Same")
        assert "Please enter a proper description for the book." in str(exc_info.value)

    def test_update_requires_description(self):
        with pytest.raises(ValidationError):
            BookForUpdateDto(title="Only a title")

    def test_link_is_immutable(self):
        link = LinkDto(href="http://testserver/api", rel="self", method="GET")
        with pytest.raises(ValidationError):
            link.rel = "other"

    def test_entity_id_is_frozen(self):
        author = Author(first_name="A", last_name="B", date_of_birth=date(2000, 1, 1), genre="C")
        with pytest.raises(ValidationError):
            author.id = uuid4()
