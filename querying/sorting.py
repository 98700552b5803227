"""
Sort composition for order-by expressions.

An expression such as ``"Genre, Age desc"`` becomes an ordered list of sort
keys. Keys are applied as successive stable sorts starting from the last one,
so the first requested clause ends up as the primary ordering.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar

from querying.exceptions import InvalidSortKeyError
from querying.property_mapping import PropertyMappingValue, clause_key

T = TypeVar("T")

DESCENDING_SUFFIX = " desc"


@dataclass(frozen=True)
class SortKey:
    """One storage attribute and its direction."""
    attribute: str
    descending: bool = False


def compose_sort_keys(
    order_by: Optional[str],
    mapping: Mapping[str, PropertyMappingValue]
) -> List[SortKey]:
    """
    Expand an order-by expression into sort keys, primary key first.

    Args:
        order_by: comma-delimited "field [asc|desc]" clauses
        mapping: public key -> storage fields

    Returns:
        Sort keys in priority order

    Raises:
        InvalidSortKeyError: if a clause names an unmapped key
    """
    if order_by is None or not order_by.strip():
        return []

    keys: List[SortKey] = []
    for clause in order_by.split(","):
        clause = clause.strip()
        descending = clause.lower().endswith(DESCENDING_SUFFIX)
        key = clause_key(clause)

        if key not in mapping:
            raise InvalidSortKeyError(key)

        value = mapping[key]
        direction = not descending if value.revert else descending
        for destination in value.destination_properties:
            keys.append(SortKey(destination, direction))

    return keys


def sort_value_getter(attribute: str) -> Callable[[Any], Any]:
    """Attribute getter that compares strings case-insensitively."""
    def getter(item: Any) -> Any:
        value = getattr(item, attribute)
        return value.casefold() if isinstance(value, str) else value
    return getter


def apply_sort_keys(source: Iterable[T], keys: List[SortKey]) -> List[T]:
    """Sort by several keys using stable sorts, least significant key first."""
    items = list(source)
    for key in reversed(keys):
        items.sort(key=sort_value_getter(key.attribute), reverse=key.descending)
    return items


def apply_sort(
    source: Iterable[T],
    order_by: Optional[str],
    mapping: Mapping[str, PropertyMappingValue]
) -> List[T]:
    """Sort ``source`` by an order-by expression. Blank expressions keep the input order."""
    return apply_sort_keys(source, compose_sort_keys(order_by, mapping))
