"""Analysis history storage for ScamGuard."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..constants import ThreatLevel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime) -> str:
    return _as_utc(value).isoformat(timespec="microseconds")


@dataclass(frozen=True)
class LogEntry:
    """One human-readable record of an analysis decision or user action."""

    source: str
    threat_level: ThreatLevel
    details: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "timestamp": _iso(self.timestamp),
            "source": self.source,
            "threat_level": str(self.threat_level),
            "details": self.details,
        }


@dataclass
class HistoryStats:
    """Dashboard counters over the analysis history."""

    total: int = 0
    danger: int = 0
    caution: int = 0
    safe: int = 0

    @classmethod
    def from_entries(cls, entries) -> "HistoryStats":
        stats = cls()
        for entry in entries:
            stats.add(entry.threat_level)
        return stats

    def add(self, level: ThreatLevel, count: int = 1) -> None:
        self.total += count
        setattr(self, str(level), getattr(self, str(level)) + count)

    def percentage(self, level: ThreatLevel) -> int:
        """Whole-number share of entries at a level (0 when empty)."""
        if self.total <= 0:
            return 0
        return round(getattr(self, str(level)) * 100 / self.total)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "danger": self.danger,
            "caution": self.caution,
            "safe": self.safe,
            "percentages": {str(level): self.percentage(level) for level in ThreatLevel},
        }


class MemoryHistory:
    """In-process analysis history, newest entry first."""

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries
        self._entries: list[LogEntry] = []

    async def add_entry(
        self,
        source: str,
        threat_level: ThreatLevel,
        details: str,
        timestamp: Optional[datetime] = None,
    ) -> LogEntry:
        entry = LogEntry(
            source=source,
            threat_level=threat_level,
            details=details,
            timestamp=_as_utc(timestamp) if timestamp else _utcnow(),
        )
        self._entries.insert(0, entry)
        if self.max_entries is not None:
            del self._entries[self.max_entries:]
        return entry

    async def entries(self, limit: Optional[int] = None) -> list[LogEntry]:
        if limit is None:
            return list(self._entries)
        return self._entries[:limit]

    async def recent_entries(self, since: datetime) -> list[LogEntry]:
        since = _as_utc(since)
        return [e for e in self._entries if e.timestamp > since]

    async def stats(self) -> HistoryStats:
        return HistoryStats.from_entries(self._entries)

    async def clear(self) -> None:
        self._entries.clear()


class HistoryDatabase:
    """Async SQLite analysis history."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self):
        """Establish database connection and create tables."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        try:
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=5000")
            await self._connection.commit()
        except aiosqlite.Error as exc:
            logger.debug("SQLite pragmas rejected: %s", exc)
        await self._create_tables()

    async def close(self):
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "HistoryDatabase":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    async def _create_tables(self):
        """Create database tables if they don't exist."""
        async with self._lock:
            await self._connection.executescript(
                """
                    CREATE TABLE IF NOT EXISTS analysis_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        source TEXT NOT NULL,
                        threat_level TEXT NOT NULL,
                        details TEXT NOT NULL DEFAULT ''
                    );

                    CREATE INDEX IF NOT EXISTS idx_analysis_log_timestamp
                        ON analysis_log(timestamp);
                """
            )
            await self._connection.commit()

    @staticmethod
    def _row_to_entry(row) -> LogEntry:
        return LogEntry(
            source=row["source"],
            threat_level=ThreatLevel.from_string(row["threat_level"]),
            details=row["details"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )

    async def add_entry(
        self,
        source: str,
        threat_level: ThreatLevel,
        details: str,
        timestamp: Optional[datetime] = None,
    ) -> LogEntry:
        entry = LogEntry(
            source=source,
            threat_level=threat_level,
            details=details,
            timestamp=_as_utc(timestamp) if timestamp else _utcnow(),
        )
        async with self._lock:
            await self._connection.execute(
                "INSERT INTO analysis_log (timestamp, source, threat_level, details) VALUES (?, ?, ?, ?)",
                (_iso(entry.timestamp), entry.source, str(entry.threat_level), entry.details),
            )
            await self._connection.commit()
        return entry

    async def entries(self, limit: Optional[int] = None) -> list[LogEntry]:
        query = "SELECT * FROM analysis_log ORDER BY timestamp DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (int(limit),)
        async with self._connection.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def recent_entries(self, since: datetime) -> list[LogEntry]:
        async with self._connection.execute(
            "SELECT * FROM analysis_log WHERE timestamp > ? ORDER BY timestamp DESC, id DESC",
            (_iso(since),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    async def stats(self) -> HistoryStats:
        stats = HistoryStats()
        async with self._connection.execute(
            "SELECT threat_level, COUNT(*) AS n FROM analysis_log GROUP BY threat_level"
        ) as cursor:
            rows = await cursor.fetchall()
        for row in rows:
            stats.add(ThreatLevel.from_string(row["threat_level"]), row["n"])
        return stats

    async def clear(self) -> None:
        async with self._lock:
            await self._connection.execute("DELETE FROM analysis_log")
            await self._connection.commit()
