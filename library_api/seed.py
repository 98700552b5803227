"""
Demo data loaded into an empty library at start-up.
"""

from datetime import date
from typing import List
from uuid import UUID

import structlog

from library_api.database import LibraryRepository
from library_api.entities import Author, Book

logger = structlog.get_logger(__name__)

STEPHEN_KING_ID = UUID("25320c5e-f58a-4b1f-b63a-8ee07a840bdf")
GEORGE_RR_MARTIN_ID = UUID("76053df4-6687-4353-8937-b45556748abe")
NEIL_GAIMAN_ID = UUID("412c3012-d891-4f5e-9613-ff7aa63e6bb3")
TOM_LANOYE_ID = UUID("578359b7-1967-41d6-8b87-64ab7605587e")
DOUGLAS_ADAMS_ID = UUID("f74d6899-9ed2-4137-9876-66b070553f8f")
JENS_LAPIDUS_ID = UUID("a1da1d8e-1988-4634-b538-a01709477b77")
THE_SHINING_ID = UUID("c7ba6add-09c4-45f8-8dd0-eaca221e5d93")


def _author(author_id, first_name, last_name, date_of_birth, genre, books) -> Author:
    return Author(
        id=author_id,
        first_name=first_name,
        last_name=last_name,
        date_of_birth=date_of_birth,
        genre=genre,
        books=[
            Book(id=book_id, title=title, description=description, author_id=author_id)
            for book_id, title, description in books
        ]
    )


def build_seed_authors() -> List[Author]:
    """Fresh copies of the demo authors and their books."""
    return [
        _author(
            STEPHEN_KING_ID, "Stephen", "King", date(1947, 9, 21), "Horror",
            [
                (THE_SHINING_ID, "The Shining",
                 "The Shining is a horror novel by American author Stephen King. Published in 1977."),
                ("a3749477-f823-4124-aa4a-fc9ad5e79cd6", "Misery",
                 "Misery is a 1987 psychological horror novel by Stephen King."),
                ("70a1f9b9-0a37-4c1a-99b1-c7709fc64167", "It",
                 "It is a 1986 horror novel by American author Stephen King."),
                ("60188a2b-2784-4fc4-8df8-8919ff838b0b", "The Stand",
                 "The Stand is a post-apocalyptic horror/fantasy novel by Stephen King."),
            ]
        ),
        _author(
            GEORGE_RR_MARTIN_ID, "George", "RR Martin", date(1948, 9, 20), "Fantasy",
            [
                ("447eb762-95e9-4c31-95e1-b20053fbe215", "A Game of Thrones",
                 "A Game of Thrones is the first novel in A Song of Ice and Fire."),
                ("bc4c35c3-3857-4250-9449-155fcf5109ec", "The Winds of Winter",
                 "Forthcoming 6th novel in A Song of Ice and Fire."),
                ("09af5a52-9421-44e8-a2bb-a6b9ccbc8239", "A Dance with Dragons",
                 "A Dance with Dragons is the fifth of seven planned novels in A Song of Ice and Fire."),
            ]
        ),
        _author(
            NEIL_GAIMAN_ID, "Neil", "Gaiman", date(1960, 11, 10), "Fantasy",
            [
                ("9edf91ee-ab77-4521-a402-5f188bc0c577", "American Gods",
                 "American Gods is a Hugo and Nebula Award-winning novel by Neil Gaiman."),
            ]
        ),
        _author(
            TOM_LANOYE_ID, "Tom", "Lanoye", date(1958, 8, 27), "Various",
            [
                ("01457142-358f-495f-aafa-fb23de3d67e9", "Speechless",
                 "Good-natured and often humorous, Speechless is at times a 'song of curses'."),
            ]
        ),
        _author(
            DOUGLAS_ADAMS_ID, "Douglas", "Adams", date(1952, 3, 11), "Science fiction",
            [
                ("e57b605f-8b3c-4089-b672-6ce9e6d6c23f", "The Hitchhiker's Guide to the Galaxy",
                 "The Hitchhiker's Guide to the Galaxy is the first of five books in the series."),
            ]
        ),
        _author(
            JENS_LAPIDUS_ID, "Jens", "Lapidus", date(1974, 5, 24), "Thriller",
            [
                ("1325360c-8253-473a-a20f-55c269c20407", "Easy Money",
                 "Easy Money or Snabba cash is a novel from 2006 by Jens Lapidus."),
            ]
        ),
    ]


async def ensure_seed_data(repository: LibraryRepository) -> bool:
    """
    Add the demo authors when the library is empty.

    Returns:
        True if seed data was written
    """
    health = await repository.health_check()
    if health.get("authors_count"):
        logger.info("Library already contains authors, skipping seed", authors=health["authors_count"])
        return False

    authors = build_seed_authors()
    for author in authors:
        repository.add_author(author)

    saved = await repository.save()
    logger.info("Seed data written", authors=len(authors), success=saved)
    return saved
