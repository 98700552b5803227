"""
Batch endpoints: create several authors at once and fetch them back by ids.

The lookup route must be registered before ``/authors/{author_id}`` so the
parenthesised id list is not taken for a single id.
"""

from typing import List

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, status

from library_api.binders import parse_id_list
from library_api.database import LibraryRepository
from library_api.dependencies import get_mapper, get_repository, get_uri_builder
from library_api.exceptions import PersistenceError
from library_api.links import UriBuilder
from library_api.mappers import LibraryMapper
from library_api.models import AuthorDto, AuthorForCreationDto, ErrorResponse
from library_api.negotiation import negotiate_media_type, negotiated_response

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Author collections"])


@router.get(
    "/authors/({ids})",
    name="get_author_collection",
    response_model=List[AuthorDto],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_author_collection(
    ids: str,
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper)
):
    """
    Get several authors by id.

    - **ids**: Comma-separated author ids, e.g. (id1,id2)

    Responds 404 when any of the ids is unknown.
    """
    try:
        author_ids = parse_id_list(ids)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    requested = set(author_ids)
    authors = await repository.get_authors_by_ids(author_ids)
    if len(authors) != len(requested):
        logger.info("Author collection incomplete", requested=len(requested), found=len(authors))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="One or more authors were not found"
        )

    return negotiated_response(mapper.authors_to_dtos(authors), media_type)


@router.post(
    "/authorcollections",
    name="create_author_collection",
    status_code=status.HTTP_201_CREATED,
    response_model=List[AuthorDto],
    responses={400: {"model": ErrorResponse}}
)
async def create_author_collection(
    author_collection: List[AuthorForCreationDto] = Body(...),
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """Create several authors in one commit."""
    if not author_collection:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one author is required"
        )

    authors = [mapper.author_from_creation(author) for author in author_collection]
    for author in authors:
        repository.add_author(author)

    if not await repository.save():
        raise PersistenceError("Creating an author collection failed on save.")

    id_list = ",".join(str(author.id) for author in authors)
    logger.info("Author collection created", authors=len(authors))

    return negotiated_response(
        mapper.authors_to_dtos(authors),
        media_type,
        status_code=status.HTTP_201_CREATED,
        headers={"Location": uri("get_author_collection", ids=id_list)}
    )
