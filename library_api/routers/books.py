"""
Book endpoints, nested under their author.

PUT and PATCH on an unknown book id create the book with that id (upsert).
An id already used by another author's book is a conflict.
"""

from typing import Any, Dict, List
from uuid import UUID

import jsonpatch
import jsonpointer
import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from pydantic import ValidationError

from library_api.database import LibraryRepository
from library_api.dependencies import get_mapper, get_repository, get_uri_builder
from library_api.entities import Book
from library_api.exceptions import PersistenceError, UnprocessableEntityError, format_validation_errors
from library_api.links import UriBuilder, create_links_for_book, create_links_for_books
from library_api.mappers import LibraryMapper
from library_api.models import (
    BookForCreationDto, BookForUpdateDto, ErrorResponse, LinkedCollectionResource, ValidationErrorResponse
)
from library_api.negotiation import negotiate_media_type, negotiated_response, wants_links

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Books"])

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse}}
WRITE_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ValidationErrorResponse},
}


async def ensure_author_exists(repository: LibraryRepository, author_id: UUID) -> None:
    if not await repository.author_exists(author_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Author with ID '{author_id}' not found"
        )


def book_not_found(book_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Book with ID '{book_id}' not found"
    )


async def ensure_book_id_is_free(repository: LibraryRepository, author_id: UUID, book_id: UUID) -> None:
    """An upsert may not take over a book id owned by another author."""
    if await repository.book_exists(book_id):
        logger.warning("Book id belongs to another author", author_id=str(author_id), book_id=str(book_id))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Book with ID '{book_id}' belongs to another author"
        )


def shape_book(book: Book, mapper: LibraryMapper, uri: UriBuilder) -> Dict[str, Any]:
    """Book representation with its links."""
    representation = mapper.book_to_dto(book).model_dump(by_alias=True)
    representation["links"] = create_links_for_book(uri, book.author_id, book.id)
    return representation


async def _save_new_book(
    repository: LibraryRepository,
    book: Book,
    mapper: LibraryMapper,
    uri: UriBuilder,
    media_type: str
):
    repository.add_book_for_author(book.author_id, book)
    if not await repository.save():
        raise PersistenceError(f"Creating a book for author {book.author_id} failed on save.")

    logger.info("Book created", author_id=str(book.author_id), book_id=str(book.id))

    return negotiated_response(
        shape_book(book, mapper, uri),
        media_type,
        status_code=status.HTTP_201_CREATED,
        headers={"Location": uri("get_book_for_author", author_id=book.author_id, book_id=book.id)}
    )


@router.get("/authors/{author_id}/books", name="get_books_for_author", responses=NOT_FOUND_RESPONSES)
async def get_books_for_author(
    author_id: UUID,
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """Get all books of an author, ordered by title."""
    await ensure_author_exists(repository, author_id)
    books = await repository.get_books_for_author(author_id)

    if wants_links(media_type):
        content = LinkedCollectionResource(
            value=[shape_book(book, mapper, uri) for book in books],
            links=create_links_for_books(uri, author_id)
        )
        return negotiated_response(content, media_type)

    return negotiated_response(mapper.books_to_dtos(books), media_type)


@router.get(
    "/authors/{author_id}/books/{book_id}",
    name="get_book_for_author",
    responses=NOT_FOUND_RESPONSES
)
async def get_book_for_author(
    author_id: UUID,
    book_id: UUID,
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """Get one book of an author."""
    await ensure_author_exists(repository, author_id)

    book = await repository.get_book_for_author(author_id, book_id)
    if not book:
        raise book_not_found(book_id)

    return negotiated_response(shape_book(book, mapper, uri), media_type)


@router.post(
    "/authors/{author_id}/books",
    name="create_book_for_author",
    status_code=status.HTTP_201_CREATED,
    responses=WRITE_RESPONSES
)
async def create_book_for_author(
    author_id: UUID,
    book: BookForCreationDto,
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Create a book for an author.

    - **title**: Required, at most 100 characters
    - **description**: At most 500 characters, must differ from the title
    """
    await ensure_author_exists(repository, author_id)
    return await _save_new_book(repository, mapper.book_from_creation(book, author_id), mapper, uri, media_type)


@router.delete(
    "/authors/{author_id}/books/{book_id}",
    name="delete_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND_RESPONSES
)
async def delete_book_for_author(
    author_id: UUID,
    book_id: UUID,
    repository: LibraryRepository = Depends(get_repository)
):
    """Delete one book of an author."""
    await ensure_author_exists(repository, author_id)

    book = await repository.get_book_for_author(author_id, book_id)
    if not book:
        raise book_not_found(book_id)

    repository.delete_book(book)
    if not await repository.save():
        raise PersistenceError(f"Deleting book {book_id} for author {author_id} failed on save.")

    logger.info("Book deleted", author_id=str(author_id), book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/authors/{author_id}/books/{book_id}",
    name="update_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={201: {"description": "Book created with the given id"}, **WRITE_RESPONSES}
)
async def update_book_for_author(
    author_id: UUID,
    book_id: UUID,
    book: BookForUpdateDto,
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Replace a book. An unknown book id creates the book with that id.

    - **title**: Required, at most 100 characters
    - **description**: Required, at most 500 characters, must differ from the title
    """
    await ensure_author_exists(repository, author_id)

    existing = await repository.get_book_for_author(author_id, book_id)
    if not existing:
        await ensure_book_id_is_free(repository, author_id, book_id)
        new_book = mapper.book_from_creation(book, author_id, book_id=book_id)
        return await _save_new_book(repository, new_book, mapper, uri, media_type)

    repository.update_book_for_author(mapper.apply_book_update(book, existing))
    if not await repository.save():
        raise PersistenceError(f"Updating book {book_id} for author {author_id} failed on save.")

    logger.info("Book updated", author_id=str(author_id), book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def apply_book_patch(document: Dict[str, Any], patch_document: List[Dict[str, Any]]) -> BookForUpdateDto:
    """
    Apply a JSON Patch to a book document and validate the result.

    Raises:
        UnprocessableEntityError: if the patch cannot be applied or the result is invalid
    """
    try:
        patched = jsonpatch.apply_patch(document, patch_document)
    except (jsonpatch.JsonPatchException, jsonpointer.JsonPointerException) as e:
        raise UnprocessableEntityError({"patchDocument": [str(e)]})

    try:
        return BookForUpdateDto.model_validate(patched)
    except ValidationError as e:
        raise UnprocessableEntityError(format_validation_errors(e.errors()))


@router.patch(
    "/authors/{author_id}/books/{book_id}",
    name="partially_update_book_for_author",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={201: {"description": "Book created with the given id"}, **WRITE_RESPONSES}
)
async def partially_update_book_for_author(
    author_id: UUID,
    book_id: UUID,
    patch_document: List[Dict[str, Any]] = Body(..., description="JSON Patch (RFC 6902) operations"),
    media_type: str = Depends(negotiate_media_type),
    repository: LibraryRepository = Depends(get_repository),
    mapper: LibraryMapper = Depends(get_mapper),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """
    Patch a book with a JSON Patch document, e.g.
    ``[{"op": "replace", "path": "/title", "value": "New title"}]``.

    An unknown book id creates the book with that id from the patched fields.
    """
    await ensure_author_exists(repository, author_id)

    existing = await repository.get_book_for_author(author_id, book_id)
    if not existing:
        await ensure_book_id_is_free(repository, author_id, book_id)
        book_to_patch = apply_book_patch({"title": None, "description": None}, patch_document)
        new_book = mapper.book_from_creation(book_to_patch, author_id, book_id=book_id)
        return await _save_new_book(repository, new_book, mapper, uri, media_type)

    current = mapper.book_to_update_dto(existing).model_dump(by_alias=True)
    book_to_patch = apply_book_patch(current, patch_document)

    repository.update_book_for_author(mapper.apply_book_update(book_to_patch, existing))
    if not await repository.save():
        raise PersistenceError(f"Patching book {book_id} for author {author_id} failed on save.")

    logger.info("Book patched", author_id=str(author_id), book_id=str(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
