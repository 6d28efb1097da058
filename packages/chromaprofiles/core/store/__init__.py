"""Persistence of candidate links and profile stubs."""

from chromaprofiles.core.store.factory import create_link_store
from chromaprofiles.core.store.models import StoreConnectionError, StoreError
from chromaprofiles.core.store.protocols import LinkStoreSync

__all__ = [
    "LinkStoreSync",
    "create_link_store",
    "StoreError",
    "StoreConnectionError",
]
