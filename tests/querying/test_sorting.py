"""
Tests for sort composition.
"""

from types import SimpleNamespace

import pytest

from querying.exceptions import InvalidSortKeyError
from querying.property_mapping import PropertyMappingValue
from querying.sorting import SortKey, apply_sort, apply_sort_keys, compose_sort_keys

RECORD_MAPPING = {
    "Name": PropertyMappingValue(["name"]),
    "Group": PropertyMappingValue(["group"]),
    "Order": PropertyMappingValue(["order"]),
    "Rank": PropertyMappingValue(["order"], revert=True),
    "Both": PropertyMappingValue(["group", "name"]),
}


class TestComposeSortKeys:
    """Test compose_sort_keys."""

    def test_blank_expression(self):
        assert compose_sort_keys(None, RECORD_MAPPING) == []
        assert compose_sort_keys("  ", RECORD_MAPPING) == []

    def test_clauses_in_request_order(self):
        keys = compose_sort_keys("Group, Name desc", RECORD_MAPPING)
        assert keys == [SortKey("group", False), SortKey("name", True)]

    def test_desc_is_case_insensitive(self):
        assert compose_sort_keys("Name DESC", RECORD_MAPPING) == [SortKey("name", True)]

    def test_revert_inverts_direction(self):
        assert compose_sort_keys("Rank", RECORD_MAPPING) == [SortKey("order", True)]
        assert compose_sort_keys("Rank desc", RECORD_MAPPING) == [SortKey("order", False)]

    def test_multi_field_mapping_expands_in_order(self):
        keys = compose_sort_keys("Both desc", RECORD_MAPPING)
        assert keys == [SortKey("group", True), SortKey("name", True)]

    def test_unknown_key_raises(self):
        with pytest.raises(InvalidSortKeyError) as exc_info:
            compose_sort_keys("Name, Missing", RECORD_MAPPING)
        assert exc_info.value.key == "Missing"
        assert str(exc_info.value) == "Key mapping for Missing is missing"


class TestApplySort:
    """Test apply_sort and the reverse-application law."""

    def test_first_clause_is_primary(self, records):
        result = apply_sort(records, "Group, Name desc", RECORD_MAPPING)
        assert [(r.group, r.name) for r in result] == [(1, "c"), (1, "a"), (2, "b"), (2, "a")]

    def test_equals_successive_stable_sorts_last_key_first(self, records):
        expected = sorted(records, key=lambda r: r.name, reverse=True)
        expected = sorted(expected, key=lambda r: r.group)
        assert apply_sort(records, "Group,Name desc", RECORD_MAPPING) == expected

    def test_stable_for_equal_keys(self, records):
        result = apply_sort(records, "Name", RECORD_MAPPING)
        assert [r.order for r in result] == [2, 4, 1, 3]

    def test_blank_keeps_input_order(self, records):
        assert apply_sort(records, "", RECORD_MAPPING) == records

    def test_does_not_mutate_source(self, records):
        original = list(records)
        apply_sort(records, "Order desc", RECORD_MAPPING)
        assert records == original

    def test_apply_sort_keys_directly(self, records):
        result = apply_sort_keys(records, [SortKey("order", True)])
        assert [r.order for r in result] == [4, 3, 2, 1]

    def test_strings_compare_case_insensitively(self):
        names = [SimpleNamespace(name=name, group=1, order=0) for name in ["Tom", "aaron", "Bob", "anna"]]
        assert [r.name for r in apply_sort(names, "Name", RECORD_MAPPING)] == ["aaron", "anna", "Bob", "Tom"]
        assert [r.name for r in apply_sort(names, "Name desc", RECORD_MAPPING)] == ["Tom", "Bob", "anna", "aaron"]
