"""
Repository layer for authors and books.

Mutations are staged on a repository instance and only reach the store when
``save()`` commits them, so one request's changes land together or not at
all. Two backends are provided: an in-memory store (development and tests)
and MongoDB through motor.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from library_api.entities import Author, Book
from library_api.models import AuthorDto, AuthorsResourceParameters
from querying.collection import CollectionQueryBuilder
from querying.paging import PagedList
from querying.property_mapping import PropertyMappingService
from querying.sorting import apply_sort

logger = structlog.get_logger(__name__)

AUTHOR_FILTER_FIELD = "genre"
AUTHOR_SEARCH_FIELDS = ("genre", "first_name", "last_name")
# Case-insensitive ordering of book titles in MongoDB
TITLE_COLLATION = {"locale": "en", "strength": 2}

# Staged operation kinds
ADD_AUTHOR = "add_author"
DELETE_AUTHOR = "delete_author"
UPSERT_BOOK = "upsert_book"
DELETE_BOOK = "delete_book"


class LibraryRepository(ABC):
    """Data access for authors and their books."""

    def __init__(self, property_mapping_service: PropertyMappingService):
        self.property_mapping_service = property_mapping_service
        self._pending: List[Tuple[str, object]] = []

    # Queries

    @abstractmethod
    async def _load_authors(self) -> List[Author]:
        """All authors, without their books."""

    @abstractmethod
    async def _load_authors_by_ids(self, author_ids: Sequence[UUID]) -> List[Author]:
        """Authors whose id is in ``author_ids``."""

    @abstractmethod
    async def get_author(self, author_id: UUID) -> Optional[Author]:
        """Get a single author by id."""

    @abstractmethod
    async def author_exists(self, author_id: UUID) -> bool:
        """Check whether an author exists."""

    @abstractmethod
    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        """Books of an author ordered by title."""

    @abstractmethod
    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        """Get one book of an author."""

    @abstractmethod
    async def book_exists(self, book_id: UUID) -> bool:
        """Check whether a book with this id exists, whichever author owns it."""

    @abstractmethod
    async def health_check(self) -> Dict:
        """Report backend health."""

    async def get_authors(self, parameters: AuthorsResourceParameters) -> PagedList[Author]:
        """
        Get authors with sorting, filtering, searching and paging.

        Args:
            parameters: bound resource parameters

        Returns:
            PagedList of author entities
        """
        mapping = self.property_mapping_service.get_property_mapping(AuthorDto, Author)
        builder = CollectionQueryBuilder(mapping, AUTHOR_FILTER_FIELD, AUTHOR_SEARCH_FIELDS)
        return builder.build(
            await self._load_authors(),
            order_by=parameters.order_by,
            genre=parameters.genre,
            search_query=parameters.search_query,
            page_number=parameters.page_number,
            page_size=parameters.page_size
        )

    async def get_authors_by_ids(self, author_ids: Sequence[UUID]) -> List[Author]:
        """Authors for a list of ids, ordered by name. Unknown ids are skipped."""
        mapping = self.property_mapping_service.get_property_mapping(AuthorDto, Author)
        return apply_sort(await self._load_authors_by_ids(author_ids), "Name", mapping)

    # Staged mutations

    def add_author(self, author: Author) -> None:
        """Stage a new author together with any books created with it."""
        for book in author.books:
            book.author_id = author.id
        self._pending.append((ADD_AUTHOR, author))

    def delete_author(self, author: Author) -> None:
        """Stage deletion of an author and, on commit, all of its books."""
        self._pending.append((DELETE_AUTHOR, author))

    def add_book_for_author(self, author_id: UUID, book: Book) -> None:
        """Stage a new book for an author."""
        book.author_id = author_id
        self._pending.append((UPSERT_BOOK, book))

    def update_book_for_author(self, book: Book) -> None:
        """Stage the changed state of an existing book."""
        self._pending.append((UPSERT_BOOK, book))

    def delete_book(self, book: Book) -> None:
        """Stage deletion of a book."""
        self._pending.append((DELETE_BOOK, book))

    async def save(self) -> bool:
        """
        Commit staged changes.

        Returns:
            True if the commit succeeded, False otherwise
        """
        pending, self._pending = self._pending, []
        return await self._commit(pending)

    @abstractmethod
    async def _commit(self, operations: List[Tuple[str, object]]) -> bool:
        """Apply staged operations to the backend."""


class InMemoryLibraryStore:
    """Process-wide in-memory tables shared by repository instances."""

    def __init__(self):
        self.authors: Dict[UUID, Author] = {}
        self.books: Dict[UUID, Book] = {}


class InMemoryLibraryRepository(LibraryRepository):
    """
    Repository over an InMemoryLibraryStore.

    Entities handed out are copies, so changes only reach the store on save.
    """

    def __init__(self, store: InMemoryLibraryStore, property_mapping_service: PropertyMappingService):
        super().__init__(property_mapping_service)
        self.store = store

    async def _load_authors(self) -> List[Author]:
        return [author.model_copy(deep=True) for author in self.store.authors.values()]

    async def _load_authors_by_ids(self, author_ids: Sequence[UUID]) -> List[Author]:
        wanted = set(author_ids)
        return [
            author.model_copy(deep=True)
            for author_id, author in self.store.authors.items()
            if author_id in wanted
        ]

    async def get_author(self, author_id: UUID) -> Optional[Author]:
        author = self.store.authors.get(author_id)
        return author.model_copy(deep=True) if author else None

    async def author_exists(self, author_id: UUID) -> bool:
        return author_id in self.store.authors

    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        books = [book for book in self.store.books.values() if book.author_id == author_id]
        return [book.model_copy() for book in sorted(books, key=lambda b: b.title.casefold())]

    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        book = self.store.books.get(book_id)
        if book is None or book.author_id != author_id:
            return None
        return book.model_copy()

    async def book_exists(self, book_id: UUID) -> bool:
        return book_id in self.store.books

    async def health_check(self) -> Dict:
        return {
            "status": "healthy",
            "backend": "memory",
            "authors_count": len(self.store.authors),
            "books_count": len(self.store.books)
        }

    async def _commit(self, operations: List[Tuple[str, object]]) -> bool:
        authors = dict(self.store.authors)
        books = dict(self.store.books)

        for kind, entity in operations:
            if kind == ADD_AUTHOR:
                authors[entity.id] = entity.model_copy(update={"books": []}, deep=True)
                for book in entity.books:
                    books[book.id] = book.model_copy()
            elif kind == DELETE_AUTHOR:
                authors.pop(entity.id, None)
                for book_id in [b.id for b in books.values() if b.author_id == entity.id]:
                    del books[book_id]
            elif kind == UPSERT_BOOK:
                books[entity.id] = entity.model_copy()
            elif kind == DELETE_BOOK:
                books.pop(entity.id, None)

        self.store.authors = authors
        self.store.books = books
        logger.debug("In-memory commit applied", operations=len(operations))
        return True


def author_to_document(author: Author) -> Dict:
    document = author.model_dump(mode="json", exclude={"id", "books"})
    document["_id"] = str(author.id)
    return document


def author_from_document(document: Dict) -> Author:
    data = {key: value for key, value in document.items() if key != "_id"}
    return Author.model_validate({**data, "id": document["_id"]})


def book_to_document(book: Book) -> Dict:
    document = book.model_dump(mode="json", exclude={"id"})
    document["_id"] = str(book.id)
    return document


def book_from_document(document: Dict) -> Book:
    data = {key: value for key, value in document.items() if key != "_id"}
    return Book.model_validate({**data, "id": document["_id"]})


def _ids(values: Iterable[UUID]) -> List[str]:
    return [str(value) for value in values]


class MongoLibraryRepository(LibraryRepository):
    """Repository over the ``authors`` and ``books`` MongoDB collections."""

    def __init__(self, database: AsyncIOMotorDatabase, property_mapping_service: PropertyMappingService):
        super().__init__(property_mapping_service)
        self.database = database
        self.authors_collection = database.authors
        self.books_collection = database.books

    async def _load_authors(self) -> List[Author]:
        documents = await self.authors_collection.find({}).to_list(length=None)
        return [author_from_document(document) for document in documents]

    async def _load_authors_by_ids(self, author_ids: Sequence[UUID]) -> List[Author]:
        cursor = self.authors_collection.find({"_id": {"$in": _ids(author_ids)}})
        documents = await cursor.to_list(length=None)
        return [author_from_document(document) for document in documents]

    async def get_author(self, author_id: UUID) -> Optional[Author]:
        document = await self.authors_collection.find_one({"_id": str(author_id)})
        return author_from_document(document) if document else None

    async def author_exists(self, author_id: UUID) -> bool:
        return await self.authors_collection.count_documents({"_id": str(author_id)}, limit=1) > 0

    async def get_books_for_author(self, author_id: UUID) -> List[Book]:
        cursor = self.books_collection.find({"author_id": str(author_id)})
        cursor = cursor.sort("title", 1).collation(TITLE_COLLATION)
        documents = await cursor.to_list(length=None)
        return [book_from_document(document) for document in documents]

    async def get_book_for_author(self, author_id: UUID, book_id: UUID) -> Optional[Book]:
        document = await self.books_collection.find_one(
            {"_id": str(book_id), "author_id": str(author_id)}
        )
        return book_from_document(document) if document else None

    async def book_exists(self, book_id: UUID) -> bool:
        return await self.books_collection.count_documents({"_id": str(book_id)}, limit=1) > 0

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")

            authors_count = await self.authors_collection.count_documents({})
            books_count = await self.books_collection.count_documents({})

            return {
                "status": "healthy",
                "backend": "mongodb",
                "authors_count": authors_count,
                "books_count": books_count
            }
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    async def _commit(self, operations: List[Tuple[str, object]]) -> bool:
        """
        Apply staged operations in one multi-document transaction.

        Transactions need a replica set (a single-node one is enough). Any
        failure aborts the transaction, so nothing of the batch is stored.
        """
        if not operations:
            return True

        try:
            async with await self.database.client.start_session() as session:
                async with session.start_transaction():
                    for kind, entity in operations:
                        await self._apply(kind, entity, session)
        except PyMongoError as e:
            logger.error("Failed to commit changes", error=str(e), operations=len(operations))
            return False

        return True

    async def _apply(self, kind: str, entity, session) -> None:
        if kind == ADD_AUTHOR:
            await self.authors_collection.insert_one(author_to_document(entity), session=session)
            if entity.books:
                await self.books_collection.insert_many(
                    [book_to_document(book) for book in entity.books], session=session
                )
        elif kind == DELETE_AUTHOR:
            await self.books_collection.delete_many({"author_id": str(entity.id)}, session=session)
            await self.authors_collection.delete_one({"_id": str(entity.id)}, session=session)
        elif kind == UPSERT_BOOK:
            document = book_to_document(entity)
            await self.books_collection.replace_one(
                {"_id": document["_id"]}, document, upsert=True, session=session
            )
        elif kind == DELETE_BOOK:
            await self.books_collection.delete_one({"_id": str(entity.id)}, session=session)
