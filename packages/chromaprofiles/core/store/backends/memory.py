"""In-memory link store backend.

``InMemoryLinkStore`` satisfies ``LinkStoreSync`` without any I/O. It is
useful for tests and one-off runs that do not need persistence.
"""

from __future__ import annotations

from chromaprofiles.core.links.models import PENDING_STATUSES, CandidateLink, ProfileStub


class InMemoryLinkStore:
    """Dictionary-backed link store. Lifecycle methods never raise."""

    def __init__(self) -> None:
        self._links: dict[int, CandidateLink] = {}
        self._profiles: list[ProfileStub] = []
        self._next_id = 1

    def initialize(self) -> None:
        """No-op initialisation. Safe to call multiple times."""

    def close(self) -> None:
        """No-op close. Safe to call multiple times."""

    def _find(self, parent_post_id: str, original_url: str) -> CandidateLink | None:
        for link in self._links.values():
            if link.parent_post_id == parent_post_id and link.original_url == original_url:
                return link
        return None

    def _assign_id(self, link: CandidateLink) -> CandidateLink:
        link_id = link.id if link.id is not None else self._next_id
        self._next_id = max(self._next_id, link_id) + 1
        return link.model_copy(update={"id": link_id})

    def insert_link(self, link: CandidateLink) -> bool:
        if self._find(link.parent_post_id, link.original_url) is not None:
            return False
        if link.id is not None and link.id in self._links:
            return False
        stored = self._assign_id(link)
        self._links[stored.id] = stored  # type: ignore[index]
        return True

    def update_link(self, link: CandidateLink) -> bool:
        if link.id is None:
            existing = self._find(link.parent_post_id, link.original_url)
            if existing is None:
                return self.insert_link(link)
            link = link.model_copy(update={"id": existing.id})
        elif link.id not in self._links:
            self._next_id = max(self._next_id, link.id + 1)
        self._links[link.id] = link  # type: ignore[index]
        return True

    def get_link(self, link_id: int) -> CandidateLink | None:
        return self._links.get(link_id)

    def pending_links(self) -> list[CandidateLink]:
        return [
            self._links[k] for k in sorted(self._links)
            if self._links[k].link_status in PENDING_STATUSES
        ]

    def insert_profile(self, profile: ProfileStub) -> bool:
        for existing in self._profiles:
            if existing.parent_post_id == profile.parent_post_id:
                return False
            if (
                profile.origin_link_id is not None
                and existing.origin_link_id == profile.origin_link_id
            ):
                return False
        self._profiles.append(profile)
        return True

    def list_profiles(self) -> list[ProfileStub]:
        return list(self._profiles)
