"""
FastAPI dependencies shared by the routers.

Collaborators are built in create_app and kept on ``app.state``; handlers get
them through these functions so tests can override any of them.
"""

from fastapi import HTTPException, Request, status

from library_api.database import LibraryRepository
from library_api.links import RequestUriBuilder, UriBuilder
from library_api.mappers import LibraryMapper
from querying.property_mapping import PropertyMappingService


def get_repository(request: Request) -> LibraryRepository:
    """A fresh repository (unit of work) for the current request."""
    factory = getattr(request.app.state, "repository_factory", None)
    if factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return factory()


def get_mapper(request: Request) -> LibraryMapper:
    return request.app.state.mapper


def get_property_mapping_service(request: Request) -> PropertyMappingService:
    return request.app.state.property_mapping_service


def get_uri_builder(request: Request) -> UriBuilder:
    return RequestUriBuilder(request)
