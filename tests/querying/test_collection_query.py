"""
Tests for the collection query builder over author entities.
"""

import pytest

from library_api.database import AUTHOR_FILTER_FIELD, AUTHOR_SEARCH_FIELDS
from library_api.mappers import AUTHOR_PROPERTY_MAPPING
from querying.collection import CollectionQueryBuilder
from querying.exceptions import InvalidSortKeyError


@pytest.fixture
def builder():
    return CollectionQueryBuilder(AUTHOR_PROPERTY_MAPPING, AUTHOR_FILTER_FIELD, AUTHOR_SEARCH_FIELDS)


def names(page):
    return [f"{author.first_name} {author.last_name}" for author in page]


def test_default_name_order(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Name")
    assert names(page) == [
        "Douglas Adams", "George RR Martin", "Jens Lapidus",
        "Neil Gaiman", "Stephen King", "Tom Lanoye"
    ]


def test_age_sorts_by_date_of_birth_reverted(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Age")
    assert names(page)[0] == "Jens Lapidus"
    assert names(page)[-1] == "Stephen King"


def test_genre_filter_is_trimmed_and_case_insensitive(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Name", genre="  fantasy ")
    assert names(page) == ["George RR Martin", "Neil Gaiman"]
    assert page.total_count == 2


def test_search_matches_any_field(builder, sample_authors):
    assert names(builder.build(sample_authors, order_by="Name", search_query="LAN")) == ["Tom Lanoye"]
    assert names(builder.build(sample_authors, order_by="Name", search_query="fiction")) == ["Douglas Adams"]


def test_genre_and_search_combine(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Name", genre="Fantasy", search_query="gai")
    assert names(page) == ["Neil Gaiman"]


def test_blank_filters_are_skipped(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Name", genre="  ", search_query="")
    assert page.total_count == len(sample_authors)


def test_total_count_taken_before_paging(builder, sample_authors):
    page = builder.build(sample_authors, order_by="Genre, Name", page_number=2, page_size=2)
    assert page.total_count == 6
    assert page.total_pages == 3
    assert names(page) == ["Stephen King", "Douglas Adams"]


def test_unknown_sort_key(builder, sample_authors):
    with pytest.raises(InvalidSortKeyError):
        builder.build(sample_authors, order_by="Height")
