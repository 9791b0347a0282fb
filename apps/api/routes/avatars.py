"""Serve avatars written by LocalBlobStore when AVATAR_BASE_URL is empty."""

import mimetypes

from fastapi import APIRouter, Response

from apps.api.services.app_context import BlobStoreDep
from apps.api.services.errors import NotFound

router = APIRouter()


@router.get("/{name}")
def get_avatar(name: str, blob_store: BlobStoreDep) -> Response:
    data = blob_store.get(f"avatars/{name}")
    if data is None:
        raise NotFound("Avatar not found.")
    media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
