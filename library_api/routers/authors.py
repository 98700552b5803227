"""
Author endpoints: paged listing, single lookup, creation and deletion.
"""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status
from pydantic import ValidationError

from library_api.binders import authors_resource_parameters
from library_api.database import LibraryRepository
from library_api.dependencies import (
    get_mapper, get_property_mapping_service, get_repository, get_uri_builder
)
from library_api.entities import Author
from library_api.exceptions import PersistenceError, UnprocessableEntityError, format_validation_errors
from library_api.links import (
    ResourceUriType, UriBuilder, create_authors_resource_uri,
    create_links_for_author, create_links_for_authors
)
from library_api.mappers import LibraryMapper
from library_api.models import (
    AuthorDto, AuthorForCreationDto, AuthorForCreationWithDateOfDeathDto,
    AuthorsResourceParameters, ErrorResponse, LinkedCollectionResource, PaginationMetadata
)
from library_api.negotiation import (
    AUTHOR_FULL_MEDIA_TYPE, AUTHOR_WITH_DATE_OF_DEATH_MEDIA_TYPE, JSON_MEDIA_TYPE,
    negotiate_media_type, negotiated_response, parse_media_types, wants_links
)
from querying.property_mapping import PropertyMappingService
from querying.shaping import FieldRegistry, shape_collection, shape_data

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Authors"])

AUTHOR_CREATION_MODELS = {
    JSON_MEDIA_TYPE: AuthorForCreationDto,
    AUTHOR_FULL_MEDIA_TYPE: AuthorForCreationDto,
    AUTHOR_WITH_DATE_OF_DEATH_MEDIA_TYPE: AuthorForCreationWithDateOfDeathDto,
}


def ensure_fields_exist(fields: Optional[str]) -> None:
    """Reject a field list that does not resolve against AuthorDto."""
    if not FieldRegistry.for_model(AuthorDto).has_fields(fields):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid fields '{fields}'"
        )


def shape_author(author: Author, mapper: LibraryMapper, uri: UriBuilder, fields: Optional[str] = None) -> dict:
    """Shaped author representation with its links."""
    shaped = shape_data(mapper.author_to_dto(author), fields)
    shaped["links"] = create_links_for_author(uri, author.id, fields)
    return shaped


@router.api_route(
    "/authors",
    methods=["GET", "HEAD"],
    name="get_authors",
    responses={400: {"model": ErrorResponse}, 406: {"model": ErrorResponse}}
)
async def get_authors(
    parameters: AuthorsResourceParameters = Depends(authors_resource_parameters),
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    property_mapping_service: PropertyMappingService = Depends(get_property_mapping_service),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Get authors with paging, sorting, filtering, searching and data shaping.

    Pagination metadata is returned in the X-Pagination header.
    """
    if not property_mapping_service.valid_mapping_exists_for(AuthorDto, Author, parameters.order_by):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid orderBy '{parameters.order_by}'"
        )
    ensure_fields_exist(parameters.fields)

    authors = await repository.get_authors(parameters)
    pagination = PaginationMetadata(
        total_count=authors.total_count,
        page_size=authors.page_size,
        current_page=authors.current_page,
        total_pages=authors.total_pages
    )

    if wants_links(media_type):
        shaped_authors = shape_collection(mapper.authors_to_dtos(authors), parameters.fields, AuthorDto)
        for author, shaped in zip(authors, shaped_authors):
            shaped["links"] = create_links_for_author(uri, author.id, parameters.fields)

        content = LinkedCollectionResource(
            value=shaped_authors,
            links=create_links_for_authors(uri, parameters, authors.has_next, authors.has_previous)
        )
        header = pagination.model_dump_json(
            by_alias=True, exclude={"previous_page_link", "next_page_link"}
        )
    else:
        if authors.has_previous:
            pagination.previous_page_link = create_authors_resource_uri(
                uri, parameters, ResourceUriType.PREVIOUS_PAGE
            )
        if authors.has_next:
            pagination.next_page_link = create_authors_resource_uri(
                uri, parameters, ResourceUriType.NEXT_PAGE
            )
        content = shape_collection(mapper.authors_to_dtos(authors), parameters.fields, AuthorDto)
        header = pagination.model_dump_json(by_alias=True)

    return negotiated_response(content, media_type, headers={"X-Pagination": header})


@router.options("/authors", name="get_authors_options")
async def get_authors_options():
    """Methods supported on the author collection."""
    return Response(status_code=status.HTTP_200_OK, headers={"Allow": "GET,OPTIONS,POST"})


@router.get(
    "/authors/{author_id}",
    name="get_author",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_author(
    author_id: UUID,
    fields: Optional[str] = Query(None, description="Fields to return, e.g. 'id,name'"),
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Get a single author by ID.

    - **author_id**: Author identifier
    - **fields**: Optional field list for data shaping
    """
    ensure_fields_exist(fields)

    author = await repository.get_author(author_id)
    if not author:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Author with ID '{author_id}' not found"
        )

    return negotiated_response(shape_author(author, mapper, uri, fields), media_type)


@router.post(
    "/authors",
    name="create_author",
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 415: {"model": ErrorResponse}}
)
async def create_author(
    request: Request,
    content_type: Optional[str] = Header(None),
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Create an author, optionally together with books.

    The Content-Type selects the input version:

    - **application/json**, **application/vnd.marvin.author.full+json**: author with books
    - **application/vnd.marvin.authorwithdateofdeath.full+json**: author with a date of death
    """
    model = None
    for requested in parse_media_types(content_type):
        model = AUTHOR_CREATION_MODELS.get(requested)
        if model:
            break
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported content type '{content_type}'"
        )

    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is not valid JSON")
    if payload is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is required")

    try:
        author_for_creation = model.model_validate(payload)
    except ValidationError as e:
        raise UnprocessableEntityError(format_validation_errors(e.errors()), status_code=400)

    author = mapper.author_from_creation(author_for_creation)
    repository.add_author(author)
    if not await repository.save():
        raise PersistenceError("Creating an author failed on save.")

    logger.info("Author created", author_id=str(author.id), books=len(author.books))

    return negotiated_response(
        shape_author(author, mapper, uri),
        media_type,
        status_code=status.HTTP_201_CREATED,
        headers={"Location": uri("get_author", author_id=author.id)}
    )


@router.post(
    "/authors/{author_id}",
    name="block_author_creation",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def block_author_creation(
    author_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Authors cannot be created at a client-chosen URI."""
    if await repository.author_exists(author_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Author with ID '{author_id}' already exists"
        )

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Author with ID '{author_id}' not found"
    )


@router.delete(
    "/authors/{author_id}",
    name="delete_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}}
)
async def delete_author(
    author_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Delete an author together with all of their books."""
    author = await repository.get_author(author_id)
    if not author:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Author with ID '{author_id}' not found"
        )

    repository.delete_author(author)
    if not await repository.save():
        raise PersistenceError(f"Deleting author {author_id} failed on save.")

    logger.info("Author deleted", author_id=str(author_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
