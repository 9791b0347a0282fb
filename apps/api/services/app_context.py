"""Per-application collaborators exposed as FastAPI dependencies.

create_app() puts the Store, BlobStore and Settings on app.state; routes receive them
through these aliases instead of importing globals.
"""

from typing import Annotated

from fastapi import Depends, Request

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.services.blob_store import BlobStore


def get_store(request: Request) -> Store:
    """FastAPI dependency: the application's Store."""
    return request.app.state.store


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# Type aliases for Depends()
StoreDep = Annotated[Store, Depends(get_store)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
