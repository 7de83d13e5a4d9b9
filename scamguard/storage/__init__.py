"""Storage modules for ScamGuard."""

from .history import HistoryDatabase, HistoryStats, LogEntry, MemoryHistory

__all__ = ["HistoryDatabase", "HistoryStats", "LogEntry", "MemoryHistory"]
