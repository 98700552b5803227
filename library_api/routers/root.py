"""
API root: the entry point a client discovers the API from.
"""

from fastapi import APIRouter, Depends, Response, status

from library_api.dependencies import get_uri_builder
from library_api.links import UriBuilder, create_links_for_root
from library_api.negotiation import negotiate_media_type, negotiated_response, wants_links

router = APIRouter(tags=["Root"])


@router.get("/", name="get_root", status_code=status.HTTP_200_OK)
async def get_root(
    media_type: str = Depends(negotiate_media_type),
    uri: UriBuilder = Depends(get_uri_builder)
):
    """Links to the top-level resources when HATEOAS output is requested, 204 otherwise."""
    if wants_links(media_type):
        return negotiated_response(create_links_for_root(uri), media_type)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
