"""
Tests for property mappings.
"""

import pytest

from library_api.entities import Author
from library_api.models import AuthorDto, BookDto
from querying.exceptions import PropertyMappingNotFoundError
from querying.property_mapping import (
    PropertyMapping, PropertyMappingService, PropertyMappingValue, clause_key
)


class TestPropertyMappingValue:
    """Test PropertyMappingValue."""

    def test_destinations_are_frozen_as_tuple(self):
        value = PropertyMappingValue(["first_name", "last_name"])
        assert value.destination_properties == ("first_name", "last_name")
        assert value.revert is False

    def test_revert_flag(self):
        assert PropertyMappingValue(["date_of_birth"], revert=True).revert is True


class TestPropertyMapping:
    """Test the case-insensitive mapping table."""

    def test_lookup_ignores_case(self):
        mapping = PropertyMapping({"Name": PropertyMappingValue(["first_name", "last_name"])})
        assert "name" in mapping
        assert "NAME" in mapping
        assert mapping["nAmE"].destination_properties == ("first_name", "last_name")

    def test_iterates_original_keys(self):
        mapping = PropertyMapping({"Id": PropertyMappingValue(["id"]), "Genre": PropertyMappingValue(["genre"])})
        assert list(mapping) == ["Id", "Genre"]
        assert len(mapping) == 2


def test_clause_key():
    assert clause_key("Name") == "Name"
    assert clause_key(" Age desc ") == "Age"
    assert clause_key("Genre asc") == "Genre"


class TestPropertyMappingService:
    """Test PropertyMappingService."""

    def test_get_registered_mapping(self, property_mapping_service):
        mapping = property_mapping_service.get_property_mapping(AuthorDto, Author)
        assert mapping["Age"].revert is True
        assert mapping["Name"].destination_properties == ("first_name", "last_name")

    def test_unregistered_pair_raises(self, property_mapping_service):
        with pytest.raises(PropertyMappingNotFoundError) as exc_info:
            property_mapping_service.get_property_mapping(BookDto, Author)
        assert "BookDto" in str(exc_info.value)

    def test_mappings_in_constructor(self):
        service = PropertyMappingService({(AuthorDto, Author): {"Id": PropertyMappingValue(["id"])}})
        assert "id" in service.get_property_mapping(AuthorDto, Author)

    @pytest.mark.parametrize("fields,expected", [
        (None, True),
        ("", True),
        ("   ", True),
        ("Name", True),
        ("name desc", True),
        ("Genre, Age desc", True),
        ("Id,Genre,Age,Name", True),
        ("Name,Unknown", False),
        ("Unknown desc", False),
        ("FirstName", False),
    ])
    def test_valid_mapping_exists_for(self, property_mapping_service, fields, expected):
        assert property_mapping_service.valid_mapping_exists_for(AuthorDto, Author, fields) is expected
