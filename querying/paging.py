"""
Paged result sets.

Pagination metadata travels with the page so the API can report it in a
response header instead of wrapping the representation in an envelope.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, Iterable, Iterator, List, TypeVar

T = TypeVar("T")


@dataclass
class PagedList(Generic[T]):
    """One page of items plus the counts needed to navigate the rest."""
    items: List[T] = field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = 10

    @classmethod
    def create(cls, source: Iterable[T], page_number: int, page_size: int) -> "PagedList[T]":
        """
        Count the whole source, then cut out the requested page.

        An out-of-range page number yields an empty page with valid metadata.
        """
        materialized = list(source)
        start = (page_number - 1) * page_size
        return cls(
            items=materialized[start:start + page_size],
            total_count=len(materialized),
            current_page=page_number,
            page_size=page_size
        )

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]
