"""
Hypermedia links for authors, books and the API root.

Links are built through a URI builder so the hrefs always follow the routes
the application registers. The builder takes a route name, the route's path
parameters as keyword arguments and an optional mapping of query values.
"""

from enum import Enum
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID

from fastapi import Request

from library_api.models import AuthorsResourceParameters, LinkDto

UriBuilder = Callable[..., str]


class RequestUriBuilder:
    """Builds absolute URIs for named routes of the current application."""

    def __init__(self, request: Request):
        self.request = request

    def __call__(self, route_name: str, query: Optional[Mapping[str, Any]] = None, **path: Any) -> str:
        url = self.request.url_for(route_name, **{key: str(value) for key, value in path.items()})
        query_values = {key: str(value) for key, value in (query or {}).items() if value is not None}
        if query_values:
            url = url.include_query_params(**query_values)
        return str(url)


class ResourceUriType(str, Enum):
    """Which page of a collection a URI points to."""
    PREVIOUS_PAGE = "previous_page"
    NEXT_PAGE = "next_page"
    CURRENT = "current"


def create_authors_resource_uri(
    uri: UriBuilder,
    parameters: AuthorsResourceParameters,
    uri_type: ResourceUriType
) -> str:
    """URI of the author collection with the current query, shifted to the requested page."""
    page_number = parameters.page_number
    if uri_type == ResourceUriType.PREVIOUS_PAGE:
        page_number -= 1
    elif uri_type == ResourceUriType.NEXT_PAGE:
        page_number += 1

    return uri("get_authors", query={
        "fields": parameters.fields,
        "orderBy": parameters.order_by,
        "searchQuery": parameters.search_query,
        "genre": parameters.genre,
        "pageNumber": page_number,
        "pageSize": parameters.page_size,
    })


def create_links_for_author(uri: UriBuilder, author_id: UUID, fields: Optional[str] = None) -> List[LinkDto]:
    """
    Links for a single author.

    The self link repeats the field list when the representation was shaped,
    so following it returns the same shape.
    """
    links = []

    if fields is None or not fields.strip():
        links.append(LinkDto(href=uri("get_author", author_id=author_id), rel="self", method="GET"))
    else:
        links.append(LinkDto(
            href=uri("get_author", query={"fields": fields}, author_id=author_id), rel="self", method="GET"
        ))

    links.append(LinkDto(
        href=uri("delete_author", author_id=author_id), rel="delete_author", method="DELETE"
    ))
    links.append(LinkDto(
        href=uri("create_book_for_author", author_id=author_id),
        rel="create_book_for_author",
        method="POST"
    ))
    links.append(LinkDto(
        href=uri("get_books_for_author", author_id=author_id), rel="books", method="GET"
    ))

    return links


def create_links_for_authors(
    uri: UriBuilder,
    parameters: AuthorsResourceParameters,
    has_next: bool,
    has_previous: bool
) -> List[LinkDto]:
    """Self link for the author collection plus next/previous page links when they exist."""
    links = [LinkDto(
        href=create_authors_resource_uri(uri, parameters, ResourceUriType.CURRENT),
        rel="self",
        method="GET"
    )]

    if has_next:
        links.append(LinkDto(
            href=create_authors_resource_uri(uri, parameters, ResourceUriType.NEXT_PAGE),
            rel="nextPage",
            method="GET"
        ))

    if has_previous:
        links.append(LinkDto(
            href=create_authors_resource_uri(uri, parameters, ResourceUriType.PREVIOUS_PAGE),
            rel="previousPage",
            method="GET"
        ))

    return links


def create_links_for_book(uri: UriBuilder, author_id: UUID, book_id: UUID) -> List[LinkDto]:
    """Links for the actions available on a book."""
    return [
        LinkDto(
            href=uri("get_book_for_author", author_id=author_id, book_id=book_id),
            rel="self",
            method="GET"
        ),
        LinkDto(
            href=uri("delete_book_for_author", author_id=author_id, book_id=book_id),
            rel="delete_book",
            method="DELETE"
        ),
        LinkDto(
            href=uri("update_book_for_author", author_id=author_id, book_id=book_id),
            rel="update_book",
            method="PUT"
        ),
        LinkDto(
            href=uri("partially_update_book_for_author", author_id=author_id, book_id=book_id),
            rel="partially_update_book",
            method="PATCH"
        ),
    ]


def create_links_for_books(uri: UriBuilder, author_id: UUID) -> List[LinkDto]:
    return [LinkDto(href=uri("get_books_for_author", author_id=author_id), rel="self", method="GET")]


def create_links_for_root(uri: UriBuilder) -> List[LinkDto]:
    return [
        LinkDto(href=uri("get_root"), rel="self", method="GET"),
        LinkDto(href=uri("get_authors"), rel="authors", method="GET"),
        LinkDto(href=uri("create_author"), rel="create_author", method="POST"),
    ]
