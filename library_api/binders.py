"""
Binding of query-string and path values into typed request parameters.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import Query
from pydantic import ValidationError

from library_api.exceptions import UnprocessableEntityError, format_validation_errors
from library_api.models import MAX_PAGE_SIZE, AuthorsResourceParameters


def authors_resource_parameters(
    page_number: int = Query(1, alias="pageNumber", description="Page number (starts from 1)"),
    page_size: int = Query(MAX_PAGE_SIZE, alias="pageSize", description="Items per page (at most 10)"),
    genre: Optional[str] = Query(None, description="Filter by genre"),
    search_query: Optional[str] = Query(None, alias="searchQuery", description="Search genre and names"),
    order_by: str = Query("Name", alias="orderBy", description="Sort clauses, e.g. 'Genre,Age desc'"),
    fields: Optional[str] = Query(None, description="Fields to return, e.g. 'id,name'")
) -> AuthorsResourceParameters:
    """
    Bind author listing parameters from the query string.

    - **pageNumber**: Page number (starts from 1)
    - **pageSize**: Items per page, clamped to 10
    - **genre**: Exact genre, case-insensitive
    - **searchQuery**: Substring of genre, first or last name
    - **orderBy**: Name, Age, Genre or Id, each optionally followed by 'desc'
    - **fields**: id, name, age, genre
    """
    try:
        return AuthorsResourceParameters(
            page_number=page_number,
            page_size=page_size,
            genre=genre,
            search_query=search_query,
            order_by=order_by,
            fields=fields
        )
    except ValidationError as e:
        raise UnprocessableEntityError(format_validation_errors(e.errors()), status_code=400)


def parse_id_list(ids: Optional[str]) -> List[UUID]:
    """
    Bind a comma-delimited list of ids, keeping the given order.

    Blank entries are dropped.

    Raises:
        ValueError: if the list is empty or an entry is not a valid id
    """
    if ids is None or not ids.strip():
        raise ValueError("At least one id is required")

    values = [value.strip() for value in ids.split(",") if value.strip()]
    if not values:
        raise ValueError("At least one id is required")

    parsed = []
    for value in values:
        try:
            parsed.append(UUID(value))
        except ValueError:
            raise ValueError(f"'{value}' is not a valid id") from None
    return parsed
