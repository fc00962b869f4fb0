"""SQLite-backed result cache - keeps drift and workspace records across runs."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from driftwatch.core.models import DriftCacheKey, DriftCacheRecord, WorkspaceCacheKey, WorkspaceCacheRecord
from driftwatch.errors import CacheError

logger = structlog.get_logger(__name__)


class SqliteResultCache:
    """Result cache stored in a single SQLite file.

    Usage:
        cache = SqliteResultCache("~/.driftwatch/cache.db")
        await cache.initialize()
        ...
        await cache.close()
    """

    def __init__(self, db_path: str) -> None:
        """Initialize cache.

        Args:
            db_path: Path to SQLite database file (``~`` is expanded)
        """
        self.db_path = str(Path(db_path).expanduser())
        self._db: Optional[aiosqlite.Connection] = None
        self._drift_checks = DriftCheckTable(self)
        self._workspace_listings = WorkspaceListingTable(self)

    async def initialize(self) -> None:
        """Open the database and create tables if needed."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()

        try:
            self._db = await aiosqlite.connect(self.db_path)
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(schema_sql)
            await self._db.commit()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to open result cache {self.db_path}: {e}") from e
        logger.debug("Result cache ready", path=self.db_path)

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get database connection, asserting it's initialized.

        Raises:
            CacheError: If the cache was not initialized
        """
        if self._db is None:
            raise CacheError("Result cache not initialized - call initialize() first")
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> SqliteResultCache:
        await self.initialize()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    @property
    def drift_checks(self) -> DriftCheckTable:
        return self._drift_checks

    @property
    def workspace_listings(self) -> WorkspaceListingTable:
        return self._workspace_listings


class DriftCheckTable:
    def __init__(self, cache: SqliteResultCache) -> None:
        self._cache = cache

    async def get(self, key: DriftCacheKey) -> DriftCacheRecord | None:
        try:
            cursor = await self._cache.conn.execute(
                "SELECT observed_at, drifted, error_text FROM drift_checks WHERE directory = ? AND workspace = ?",
                (key.directory, key.workspace),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to read drift check {key}: {e}") from e

        if not row:
            return None

        try:
            return DriftCacheRecord(
                observed_at=datetime.fromisoformat(row["observed_at"]),
                drifted=bool(row["drifted"]),
                error_text=row["error_text"],
            )
        except (TypeError, ValueError) as e:
            raise CacheError(f"corrupt drift check record {key}: {e}") from e

    async def put(self, key: DriftCacheKey, record: DriftCacheRecord) -> None:
        data = record.to_dict()
        try:
            await self._cache.conn.execute(
                """
                INSERT OR REPLACE INTO drift_checks (directory, workspace, observed_at, drifted, error_text)
                VALUES (?, ?, ?, ?, ?)
                """,
                (key.directory, key.workspace, data["observed_at"], int(data["drifted"]), data["error_text"]),
            )
            await self._cache.conn.commit()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to store drift check {key}: {e}") from e

    async def delete(self, key: DriftCacheKey) -> None:
        try:
            await self._cache.conn.execute(
                "DELETE FROM drift_checks WHERE directory = ? AND workspace = ?",
                (key.directory, key.workspace),
            )
            await self._cache.conn.commit()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to delete drift check {key}: {e}") from e


class WorkspaceListingTable:
    def __init__(self, cache: SqliteResultCache) -> None:
        self._cache = cache

    async def get(self, key: WorkspaceCacheKey) -> WorkspaceCacheRecord | None:
        try:
            cursor = await self._cache.conn.execute(
                "SELECT observed_at, workspaces FROM remote_workspaces WHERE directory = ?",
                (key.directory,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to read remote workspaces {key}: {e}") from e

        if not row:
            return None

        try:
            workspaces = json.loads(row["workspaces"])
            if not isinstance(workspaces, list):
                raise ValueError("workspaces is not a list")
            return WorkspaceCacheRecord.from_dict(
                {"observed_at": row["observed_at"], "remote_workspaces": workspaces}
            )
        except (TypeError, ValueError) as e:
            raise CacheError(f"corrupt remote workspaces record {key}: {e}") from e

    async def put(self, key: WorkspaceCacheKey, record: WorkspaceCacheRecord) -> None:
        data = record.to_dict()
        try:
            await self._cache.conn.execute(
                "INSERT OR REPLACE INTO remote_workspaces (directory, observed_at, workspaces) VALUES (?, ?, ?)",
                (key.directory, data["observed_at"], json.dumps(data["remote_workspaces"])),
            )
            await self._cache.conn.commit()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to store remote workspaces {key}: {e}") from e

    async def delete(self, key: WorkspaceCacheKey) -> None:
        try:
            await self._cache.conn.execute("DELETE FROM remote_workspaces WHERE directory = ?", (key.directory,))
            await self._cache.conn.commit()
        except aiosqlite.Error as e:
            raise CacheError(f"failed to delete remote workspaces {key}: {e}") from e
