"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from library_api.config import LibrarySettings
from library_api.entities import Author, Book
from library_api.main import create_app
from library_api.mappers import LibraryMapper, create_property_mapping_service

TODAY = date(2024, 6, 1)


@pytest.fixture
def settings():
    """Settings for an in-memory, seeded app without throttling."""
    return LibrarySettings(
        _env_file=None,
        storage_backend="memory",
        seed_data=True,
        rate_limiting_enabled=False,
        log_level="WARNING",
        log_format="console"
    )


@pytest.fixture
def app(settings):
    """Application with a mapper pinned to a fixed date."""
    application = create_app(settings)
    application.state.mapper = LibraryMapper(today=lambda: TODAY)
    return application


@pytest.fixture
def client(app):
    """Test client; the context manager runs the lifespan (store + seed data)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def property_mapping_service():
    return create_property_mapping_service()


@pytest.fixture
def mapper():
    return LibraryMapper(today=lambda: TODAY)


@pytest.fixture
def uri():
    """URI builder that renders route name, path values and query, for link tests without a request."""
    def build(route_name, query=None, **path):
        url = "/".join(["http://testserver", route_name] + [str(value) for value in path.values()])
        query_string = "&".join(f"{key}={value}" for key, value in (query or {}).items() if value is not None)
        return url + (f"?{query_string}" if query_string else "")
    return build


@pytest.fixture
def sample_authors():
    """Small author set covering shared genres and names."""
    def author(first_name, last_name, born, genre):
        return Author(first_name=first_name, last_name=last_name, date_of_birth=born, genre=genre)

    return [
        author("Stephen", "King", date(1947, 9, 21), "Horror"),
        author("George", "RR Martin", date(1948, 9, 20), "Fantasy"),
        author("Neil", "Gaiman", date(1960, 11, 10), "Fantasy"),
        author("Tom", "Lanoye", date(1958, 8, 27), "Various"),
        author("Douglas", "Adams", date(1952, 3, 11), "Science fiction"),
        author("Jens", "Lapidus", date(1974, 5, 24), "Thriller"),
    ]


@pytest.fixture
def sample_author_with_books():
    author = Author(
        first_name="Ursula",
        last_name="Le Guin",
        date_of_birth=date(1929, 10, 21),
        date_of_death=date(2018, 1, 22),
        genre="Science fiction"
    )
    author.books.append(Book(title="The Dispossessed", description="An ambiguous utopia.", author_id=author.id))
    author.books.append(Book(title="The Lathe of Heaven", description="Dreams change reality.", author_id=author.id))
    return author


@pytest.fixture
def records():
    """Plain records for sorting tests."""
    return [
        SimpleNamespace(name="b", group=2, order=1),
        SimpleNamespace(name="a", group=1, order=2),
        SimpleNamespace(name="c", group=1, order=3),
        SimpleNamespace(name="a", group=2, order=4),
    ]
