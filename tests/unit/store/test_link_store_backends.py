"""Contract tests shared by every link store backend."""

from __future__ import annotations

from pathlib import Path

import pytest

from chromaprofiles.core.config.models import StoreConfig
from chromaprofiles.core.links.models import (
    CandidateLink,
    LightingEffect,
    LinkStatus,
    LinkType,
    ProfileStub,
)
from chromaprofiles.core.store import LinkStoreSync, StoreConnectionError, StoreError
from chromaprofiles.core.store.backends.memory import InMemoryLinkStore
from chromaprofiles.core.store.backends.sqlite import SQLiteLinkStore
from chromaprofiles.core.store.factory import create_link_store


def _profile(post: str = "t3_a", link_id: int | None = 1) -> ProfileStub:
    return ProfileStub(
        origin_link_id=link_id,
        parent_post_id=post,
        canonical_download_url="https://drive.google.com/uc?id=X&export=download",
        lighting_effects=[
            LightingEffect(
                name="Aurora", devices=["Keyboard"], colours=["#ff0010"], effects=["wave"]
            )
        ],
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        s = InMemoryLinkStore()
    else:
        s = SQLiteLinkStore(tmp_path / "links.db")
    s.initialize()
    yield s
    s.close()


def test_satisfies_protocol(store) -> None:
    assert isinstance(store, LinkStoreSync)


def test_insert_assigns_ids_and_rejects_duplicates(store) -> None:
    assert store.insert_link(CandidateLink(parent_post_id="p1", original_url="https://a"))
    assert store.insert_link(CandidateLink(parent_post_id="p1", original_url="https://b"))
    assert store.insert_link(CandidateLink(parent_post_id="p2", original_url="https://a"))
    assert not store.insert_link(CandidateLink(parent_post_id="p1", original_url="https://a"))

    pending = store.pending_links()
    assert [(link.parent_post_id, link.original_url) for link in pending] == [
        ("p1", "https://a"),
        ("p1", "https://b"),
        ("p2", "https://a"),
    ]
    assert len({link.id for link in pending}) == 3
    assert store.get_link(pending[0].id) == pending[0]


def test_update_link_is_idempotent(store) -> None:
    store.insert_link(CandidateLink(parent_post_id="p1", original_url="https://a"))
    [link] = store.pending_links()
    updated = link.model_copy(
        update={"link_status": LinkStatus.OK, "link_type": LinkType.GOOGLE}
    )

    assert store.update_link(updated)
    assert store.update_link(updated)

    assert store.get_link(link.id) == updated
    assert store.pending_links() == []


def test_update_without_id_matches_post_and_url(store) -> None:
    store.insert_link(CandidateLink(parent_post_id="p1", original_url="https://a"))
    [link] = store.pending_links()

    store.update_link(
        CandidateLink(
            parent_post_id="p1", original_url="https://a", link_status=LinkStatus.FAILED
        )
    )

    assert store.get_link(link.id).link_status == LinkStatus.FAILED


def test_pending_links_include_retry_only(store) -> None:
    for url, status in [
        ("https://new", LinkStatus.NEW),
        ("https://retry", LinkStatus.RETRY),
        ("https://ok", LinkStatus.OK),
        ("https://failed", LinkStatus.FAILED),
        ("https://retry-failed", LinkStatus.RETRY_FAILED),
        ("https://unsupported", LinkStatus.UNSUPPORTED),
    ]:
        store.insert_link(CandidateLink(parent_post_id="p", original_url=url, link_status=status))

    assert [link.original_url for link in store.pending_links()] == [
        "https://new",
        "https://retry",
    ]


def test_get_missing_link(store) -> None:
    assert store.get_link(999) is None


def test_profiles_unique_per_post_and_origin(store) -> None:
    assert store.insert_profile(_profile("t3_a", 1))
    assert not store.insert_profile(_profile("t3_a", 2))
    assert not store.insert_profile(_profile("t3_b", 1))
    assert store.insert_profile(_profile("t3_c", None))
    assert store.insert_profile(_profile("t3_d", None))

    profiles = store.list_profiles()
    assert [p.parent_post_id for p in profiles] == ["t3_a", "t3_c", "t3_d"]
    assert profiles[0] == _profile("t3_a", 1)


def test_close_is_repeatable(store) -> None:
    store.close()
    store.close()


def test_sqlite_persists_across_reopen(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "links.db"
    first = SQLiteLinkStore(db)
    first.initialize()
    first.insert_link(CandidateLink(parent_post_id="p", original_url="https://a"))
    first.insert_profile(_profile())
    first.close()

    second = SQLiteLinkStore(db)
    second.initialize()
    try:
        assert [link.original_url for link in second.pending_links()] == ["https://a"]
        assert second.list_profiles() == [_profile()]
    finally:
        second.close()


def test_sqlite_in_memory() -> None:
    store = SQLiteLinkStore(":memory:")
    store.initialize()
    try:
        assert store.insert_link(CandidateLink(parent_post_id="p", original_url="https://a"))
    finally:
        store.close()


def test_sqlite_requires_initialize(tmp_path: Path) -> None:
    store = SQLiteLinkStore(tmp_path / "links.db")
    with pytest.raises(StoreConnectionError):
        store.pending_links()


def test_sqlite_unopenable_path(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(StoreError):
        SQLiteLinkStore(blocker / "links.db").initialize()


def test_factory_selects_backend(tmp_path: Path) -> None:
    assert isinstance(create_link_store(StoreConfig(backend="memory")), InMemoryLinkStore)
    sqlite_store = create_link_store(StoreConfig(backend="sqlite", db_path=tmp_path / "x.db"))
    assert isinstance(sqlite_store, SQLiteLinkStore)
