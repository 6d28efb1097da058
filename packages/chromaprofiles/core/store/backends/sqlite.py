"""SQLite link store backend.

Persists candidate links and profile stubs to a local SQLite database.
Satisfies the ``LinkStoreSync`` protocol.

Usage::

    from chromaprofiles.core.store.backends.sqlite import SQLiteLinkStore

    store = SQLiteLinkStore(Path("data/chromaprofiles.db"))
    store.initialize()
    try:
        store.insert_link(link)
    finally:
        store.close()
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from chromaprofiles.core.links.models import (
    PENDING_STATUSES,
    CandidateLink,
    LightingEffect,
    LinkStatus,
    LinkType,
    ProfileStub,
)
from chromaprofiles.core.store.models import StoreConnectionError, StoreError

_SCHEMA = """
CREATE TABLE IF NOT EXISTS links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_post_id TEXT NOT NULL,
    original_url TEXT NOT NULL,
    link_type TEXT NOT NULL,
    link_status TEXT NOT NULL,
    UNIQUE (parent_post_id, original_url)
);
CREATE INDEX IF NOT EXISTS idx_links_status ON links (link_status);
CREATE TABLE IF NOT EXISTS profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    origin_link_id INTEGER UNIQUE,
    parent_post_id TEXT NOT NULL UNIQUE,
    canonical_download_url TEXT NOT NULL,
    lighting_effects_json TEXT NOT NULL
);
"""


class SQLiteLinkStore:
    """SQLite-backed link store.

    Args:
        db_path: Database file (parent directories are created). ``":memory:"``
            keeps the database in memory.
        enable_wal: Enable WAL journal mode for file databases.
    """

    def __init__(self, db_path: Path | str, *, enable_wal: bool = True) -> None:
        self._db_path = db_path
        self._enable_wal = enable_wal
        self._conn: sqlite3.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the connection and create tables if missing.

        Raises:
            StoreError: If the database cannot be opened.
        """
        if self._conn is not None:
            return

        in_memory = str(self._db_path) == ":memory:"
        try:
            if not in_memory:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path))
            conn.row_factory = sqlite3.Row
            if self._enable_wal and not in_memory:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Cannot open link store at {self._db_path}: {e}") from e

        self._conn = conn

    def close(self) -> None:
        """Close the SQLite connection. Safe to call multiple times."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Link store is not initialized")
        return self._conn

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_link(row: sqlite3.Row) -> CandidateLink:
        return CandidateLink(
            id=row["id"],
            parent_post_id=row["parent_post_id"],
            original_url=row["original_url"],
            link_type=LinkType(row["link_type"]),
            link_status=LinkStatus(row["link_status"]),
        )

    def insert_link(self, link: CandidateLink) -> bool:
        conn = self._connection()
        with conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO links "
                "(id, parent_post_id, original_url, link_type, link_status) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    link.id,
                    link.parent_post_id,
                    link.original_url,
                    link.link_type.value,
                    link.link_status.value,
                ),
            )
        return cursor.rowcount == 1

    def update_link(self, link: CandidateLink) -> bool:
        conn = self._connection()
        values = (
            link.parent_post_id,
            link.original_url,
            link.link_type.value,
            link.link_status.value,
        )
        try:
            with conn:
                if link.id is None:
                    conn.execute(
                        "INSERT INTO links (parent_post_id, original_url, link_type, link_status) "
                        "VALUES (?, ?, ?, ?) "
                        "ON CONFLICT (parent_post_id, original_url) DO UPDATE SET "
                        "link_type = excluded.link_type, link_status = excluded.link_status",
                        values,
                    )
                else:
                    conn.execute(
                        "INSERT INTO links "
                        "(id, parent_post_id, original_url, link_type, link_status) "
                        "VALUES (?, ?, ?, ?, ?) "
                        "ON CONFLICT (id) DO UPDATE SET "
                        "parent_post_id = excluded.parent_post_id, "
                        "original_url = excluded.original_url, "
                        "link_type = excluded.link_type, link_status = excluded.link_status",
                        (link.id, *values),
                    )
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Cannot update link {link.id}: {e}") from e
        return True

    def get_link(self, link_id: int) -> CandidateLink | None:
        row = self._connection().execute("SELECT * FROM links WHERE id = ?", (link_id,)).fetchone()
        return self._row_to_link(row) if row else None

    def pending_links(self) -> list[CandidateLink]:
        statuses = sorted(s.value for s in PENDING_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        rows = self._connection().execute(
            f"SELECT * FROM links WHERE link_status IN ({placeholders}) ORDER BY id",
            statuses,
        )
        return [self._row_to_link(r) for r in rows]

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def insert_profile(self, profile: ProfileStub) -> bool:
        conn = self._connection()
        effects_json = json.dumps([e.model_dump(mode="json") for e in profile.lighting_effects])
        with conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO profiles "
                "(origin_link_id, parent_post_id, canonical_download_url, lighting_effects_json) "
                "VALUES (?, ?, ?, ?)",
                (
                    profile.origin_link_id,
                    profile.parent_post_id,
                    profile.canonical_download_url,
                    effects_json,
                ),
            )
        return cursor.rowcount == 1

    def list_profiles(self) -> list[ProfileStub]:
        rows = self._connection().execute("SELECT * FROM profiles ORDER BY id")
        return [
            ProfileStub(
                origin_link_id=row["origin_link_id"],
                parent_post_id=row["parent_post_id"],
                canonical_download_url=row["canonical_download_url"],
                lighting_effects=[
                    LightingEffect.model_validate(e)
                    for e in json.loads(row["lighting_effects_json"])
                ],
            )
            for row in rows
        ]
