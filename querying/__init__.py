"""
Query shaping pipeline for resource collections.

This package contains:
- Property mapping between public sort keys and storage fields
- Sort composition from order-by expressions
- Filtering, searching and paging of collections
- Data shaping (field selection) for public representations
"""

from querying.collection import CollectionQueryBuilder
from querying.exceptions import (
    FieldNotFoundError, InvalidSortKeyError, PropertyMappingNotFoundError, QueryError
)
from querying.paging import PagedList
from querying.property_mapping import PropertyMapping, PropertyMappingService, PropertyMappingValue
from querying.shaping import FieldRegistry, ShapeField, shape_collection, shape_data
from querying.sorting import SortKey, apply_sort, compose_sort_keys

__all__ = [
    "CollectionQueryBuilder",
    "FieldNotFoundError",
    "FieldRegistry",
    "InvalidSortKeyError",
    "PagedList",
    "PropertyMapping",
    "PropertyMappingNotFoundError",
    "PropertyMappingService",
    "PropertyMappingValue",
    "QueryError",
    "ShapeField",
    "SortKey",
    "apply_sort",
    "compose_sort_keys",
    "shape_collection",
    "shape_data",
]
