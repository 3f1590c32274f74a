"""SQLite state store adapter.

Implements StateStorePort using SQLite with aiosqlite for async access.
The whole mapping is replaced inside a single transaction on save.
"""

import logging
from pathlib import Path
from typing import Any

import aiosqlite

from relwatch.core.models import TrackingMarker
from relwatch.core.ports import StateStorePort

from .serialization import marker_from_dict, marker_to_dict

logger = logging.getLogger(__name__)

_COLUMNS = ("last_identifier", "last_timestamp", "cache_token", "last_checked_at")


class SQLiteStateStore(StateStorePort):
    """SQLite-backed tracking marker store."""

    def __init__(self, db_path: str):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._schema_initialized = False

    async def _init_schema(self, conn: aiosqlite.Connection) -> None:
        """Create the markers table on first use."""
        if self._schema_initialized:
            return
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS markers (
                key TEXT PRIMARY KEY,
                last_identifier TEXT,
                last_timestamp TEXT,
                cache_token TEXT,
                last_checked_at TEXT
            )
            """
        )
        await conn.commit()
        self._schema_initialized = True

    async def load(self) -> dict[str, TrackingMarker]:
        """Read every stored marker."""
        async with aiosqlite.connect(str(self.db_path)) as conn:
            await self._init_schema(conn)
            cursor = await conn.execute(
                f"SELECT key, {', '.join(_COLUMNS)} FROM markers"
            )
            rows = await cursor.fetchall()

        markers: dict[str, TrackingMarker] = {}
        for row in rows:
            key = row[0]
            try:
                markers[key] = self._row_to_marker(row)
            except ValueError as e:
                logger.warning(f"[State] Discarding malformed row {key!r}: {e}")

        logger.info(f"[State] Loaded {len(markers)} subscription(s)")
        return markers

    async def save(self, markers: dict[str, TrackingMarker]) -> None:
        """Replace all stored markers in one transaction."""
        rows = []
        for key, marker in sorted(markers.items()):
            data = marker_to_dict(marker)
            rows.append((key, *(data[column] for column in _COLUMNS)))

        async with aiosqlite.connect(str(self.db_path)) as conn:
            await self._init_schema(conn)
            try:
                await conn.execute("DELETE FROM markers")
                await conn.executemany(
                    f"INSERT INTO markers (key, {', '.join(_COLUMNS)}) VALUES (?, ?, ?, ?, ?)",
                    rows,
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

        logger.info(f"[State] Saved {len(markers)} subscription(s)")

    @staticmethod
    def _row_to_marker(row: tuple[Any, ...]) -> TrackingMarker:
        """Convert a database row to a TrackingMarker.

        Raises:
            ValueError: If the row is malformed.
        """
        if len(row) != len(_COLUMNS) + 1:
            raise ValueError(
                f"Invalid row length: expected {len(_COLUMNS) + 1}, got {len(row)}"
            )
        return marker_from_dict(dict(zip(_COLUMNS, row[1:])))
