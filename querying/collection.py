"""
Collection query builder: sort, filter, search and page in one pass.
"""

from operator import attrgetter
from typing import Iterable, Mapping, Optional, Sequence, TypeVar

import structlog

from querying.paging import PagedList
from querying.property_mapping import PropertyMappingValue
from querying.sorting import apply_sort

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class CollectionQueryBuilder:
    """
    Applies resource parameters to a candidate set.

    The steps always run in the same order: sort, filter on ``filter_field``,
    search across ``search_fields``, then page. Every call works on the source
    it is given; nothing is cached between calls.
    """

    def __init__(
        self,
        mapping: Mapping[str, PropertyMappingValue],
        filter_field: str,
        search_fields: Sequence[str]
    ):
        self.mapping = mapping
        self.filter_field = filter_field
        self._filter_getter = attrgetter(filter_field)
        self._search_getters = [attrgetter(name) for name in search_fields]

    def build(
        self,
        source: Iterable[T],
        order_by: Optional[str] = None,
        genre: Optional[str] = None,
        search_query: Optional[str] = None,
        page_number: int = 1,
        page_size: int = 10
    ) -> PagedList[T]:
        """
        Run the query.

        Args:
            source: candidate entities
            order_by: order-by expression over public keys
            genre: exact, case-insensitive value of the filter field
            search_query: case-insensitive substring of any search field
            page_number: 1-based page to return
            page_size: items per page

        Returns:
            PagedList whose total count covers the filtered, unpaged set
        """
        collection = apply_sort(source, order_by, self.mapping)

        genre_filter = _normalize(genre)
        if genre_filter:
            collection = [
                item for item in collection
                if _normalize(self._filter_getter(item)) == genre_filter
            ]

        search = _normalize(search_query)
        if search:
            collection = [
                item for item in collection
                if any(search in _normalize(getter(item)) for getter in self._search_getters)
            ]

        logger.debug(
            "Collection query applied",
            order_by=order_by,
            genre=genre_filter or None,
            search_query=search or None,
            matched=len(collection)
        )

        return PagedList.create(collection, page_number, page_size)
