"""Link store provider protocol definitions.

Backends persist candidate links and the profile stubs produced from them.
The protocol is ``@runtime_checkable`` so callers can guard with
``isinstance(store, LinkStoreSync)``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from chromaprofiles.core.links.models import CandidateLink, ProfileStub


@runtime_checkable
class LinkStoreSync(Protocol):
    """Synchronous link/profile store contract.

    Lifecycle::

        store.initialize()
        try:
            for link in store.pending_links():
                ...
        finally:
            store.close()
    """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the backend and create its schema if needed."""
        ...

    def close(self) -> None:
        """Release backend resources. Safe to call multiple times."""
        ...

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def insert_link(self, link: CandidateLink) -> bool:
        """Register a new candidate link.

        Returns:
            False if the same URL is already registered for the same post.
        """
        ...

    def update_link(self, link: CandidateLink) -> bool:
        """Upsert a link by identity (``id``, else post + URL). Idempotent."""
        ...

    def get_link(self, link_id: int) -> CandidateLink | None:
        """Return one link by id."""
        ...

    def pending_links(self) -> list[CandidateLink]:
        """Return links not yet terminally resolved (``NEW`` or ``RETRY``), oldest first."""
        ...

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def insert_profile(self, profile: ProfileStub) -> bool:
        """Persist a profile stub.

        Returns:
            False, without raising, when a profile already exists for the
            same origin link or the same parent post.
        """
        ...

    def list_profiles(self) -> list[ProfileStub]:
        """Return all stored profile stubs in insertion order."""
        ...
