"""Link store factory: selects and constructs the configured backend.

Usage::

    from chromaprofiles.core.config.models import StoreConfig
    from chromaprofiles.core.store.factory import create_link_store

    store = create_link_store(StoreConfig(backend="memory"))
    store.initialize()
"""

from __future__ import annotations

from chromaprofiles.core.config.models import StoreConfig
from chromaprofiles.core.store.models import StoreError
from chromaprofiles.core.store.protocols import LinkStoreSync


def create_link_store(config: StoreConfig) -> LinkStoreSync:
    """Construct a link store backend from *config*.

    Raises:
        StoreError: If the backend is unknown.
    """
    if config.backend == "memory":
        from chromaprofiles.core.store.backends.memory import InMemoryLinkStore

        return InMemoryLinkStore()

    if config.backend == "sqlite":
        from chromaprofiles.core.store.backends.sqlite import SQLiteLinkStore

        return SQLiteLinkStore(config.db_path)

    raise StoreError(
        f"Unknown link store backend: {config.backend!r}. Supported backends: 'memory', 'sqlite'."
    )
