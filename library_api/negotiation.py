"""
Content negotiation: vendor media types for HATEOAS output and versioned input.
"""

from typing import Any, Dict, List, Optional

from fastapi import Header, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

JSON_MEDIA_TYPE = "application/json"
HATEOAS_MEDIA_TYPE = "application/vnd.marvin.hateoas+json"
AUTHOR_FULL_MEDIA_TYPE = "application/vnd.marvin.author.full+json"
AUTHOR_WITH_DATE_OF_DEATH_MEDIA_TYPE = "application/vnd.marvin.authorwithdateofdeath.full+json"

JSON_ACCEPTABLE = {JSON_MEDIA_TYPE, "application/*", "*/*"}


def parse_media_types(header: Optional[str]) -> List[str]:
    """Media types of an Accept or Content-Type header, lower-cased, parameters dropped."""
    if not header:
        return []
    return [
        part.split(";", 1)[0].strip().lower()
        for part in header.split(",")
        if part.split(";", 1)[0].strip()
    ]


def negotiate_media_type(accept: Optional[str] = Header(None)) -> str:
    """
    Pick the response media type from the Accept header.

    Returns the HATEOAS media type when the client asks for it, plain JSON
    when the client accepts JSON or sends no preference.

    Raises:
        HTTPException: 406 when nothing acceptable can be produced
    """
    media_types = parse_media_types(accept)
    if not media_types:
        return JSON_MEDIA_TYPE
    if HATEOAS_MEDIA_TYPE in media_types:
        return HATEOAS_MEDIA_TYPE
    if JSON_ACCEPTABLE.intersection(media_types):
        return JSON_MEDIA_TYPE

    raise HTTPException(
        status_code=status.HTTP_406_NOT_ACCEPTABLE,
        detail=f"Cannot produce a response matching Accept '{accept}'"
    )


def wants_links(media_type: str) -> bool:
    return media_type == HATEOAS_MEDIA_TYPE


def negotiated_response(
    content: Any,
    media_type: str,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """JSON response labelled with the negotiated media type."""
    return JSONResponse(
        content=jsonable_encoder(content),
        status_code=status_code,
        media_type=media_type,
        headers=headers
    )
