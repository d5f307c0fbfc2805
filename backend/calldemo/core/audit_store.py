"""
LiveCall Demo - Audit Store

Stores one audit entry per accepted call request and answers the per-number
throttle query.

Privacy Notes:
    - Entries carry the phone hash only
    - In-memory store is bounded to prevent memory issues
    - All data is ephemeral (lost on restart)
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections import deque
from datetime import datetime, timedelta
from threading import Lock
from typing import Deque, Dict, List, Optional, Protocol, runtime_checkable

from calldemo.config import Settings
from calldemo.core.types import AuditEntry

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================

@runtime_checkable
class AuditStore(Protocol):
    """
    Protocol for audit storage.

    Implementations must be thread-safe and handle bounded storage.
    """

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        """Record an audit entry."""
        ...

    @abstractmethod
    async def count_since(self, phone_hash: str, window_start: datetime) -> int:
        """Count entries for a phone hash created strictly after window_start."""
        ...

    @abstractmethod
    async def get(self, request_id: str) -> Optional[AuditEntry]:
        """Look up an entry by request id."""
        ...

    @abstractmethod
    async def get_recent(self, limit: int = 100) -> List[AuditEntry]:
        """Get the most recent entries, newest first."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Clear all stored entries."""
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================

class InMemoryAuditStore:
    """
    In-memory implementation of AuditStore. Thread-safe.

    Two structures:
        - a bounded deque of entries (oldest dropped first)
        - per phone hash, a deque of creation times younger than the
          retention window, so throttle checks never scan the full history

    Timestamps per hash are pruned on append; hashes with nothing left in
    the window are swept every `sweep_every` appends.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        retention_seconds: int = 60,
        sweep_every: int = 256,
    ):
        """
        Initialize the in-memory store.

        Args:
            max_entries: Maximum number of entries to keep
            retention_seconds: How long per-number timestamps stay countable
            sweep_every: Appends between sweeps of idle phone hashes
        """
        self._retention = timedelta(seconds=retention_seconds)
        self._sweep_every = max(1, sweep_every)

        self._lock = Lock()
        self._entries: Deque[AuditEntry] = deque(maxlen=max_entries)
        self._by_request_id: Dict[str, AuditEntry] = {}
        self._recent_by_hash: Dict[str, Deque[datetime]] = {}
        self._appends_since_sweep = 0

        logger.info(
            "InMemoryAuditStore initialized: max_entries=%d, retention=%ds",
            max_entries, retention_seconds,
        )

    @property
    def tracked_numbers(self) -> int:
        """Number of phone hashes with timestamps still in the window."""
        with self._lock:
            return len(self._recent_by_hash)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def append(self, entry: AuditEntry) -> None:
        """Record an audit entry."""
        with self._lock:
            if len(self._entries) == self._entries.maxlen:
                evicted = self._entries[0]
                self._by_request_id.pop(evicted.request_id, None)

            self._entries.append(entry)
            self._by_request_id[entry.request_id] = entry

            timestamps = self._recent_by_hash.setdefault(entry.phone_hash, deque())
            timestamps.append(entry.created_at)
            self._prune(timestamps, entry.created_at - self._retention)

            self._appends_since_sweep += 1
            if self._appends_since_sweep >= self._sweep_every:
                self._sweep(entry.created_at - self._retention)

    async def count_since(self, phone_hash: str, window_start: datetime) -> int:
        """Count entries for a phone hash created strictly after window_start."""
        with self._lock:
            timestamps = self._recent_by_hash.get(phone_hash)
            if not timestamps:
                return 0
            return sum(1 for ts in timestamps if ts > window_start)

    async def get(self, request_id: str) -> Optional[AuditEntry]:
        with self._lock:
            return self._by_request_id.get(request_id)

    async def get_recent(self, limit: int = 100) -> List[AuditEntry]:
        with self._lock:
            if limit <= 0:
                return []
            return list(reversed(self._entries))[:limit]

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._by_request_id.clear()
            self._recent_by_hash.clear()
            self._appends_since_sweep = 0
            logger.info("Audit store cleared")

    @staticmethod
    def _prune(timestamps: Deque[datetime], cutoff: datetime) -> None:
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _sweep(self, cutoff: datetime) -> None:
        """Drop phone hashes whose newest timestamp is outside retention. Lock held."""
        idle = [
            phone_hash
            for phone_hash, timestamps in self._recent_by_hash.items()
            if not timestamps or timestamps[-1] <= cutoff
        ]
        for phone_hash in idle:
            del self._recent_by_hash[phone_hash]
        self._appends_since_sweep = 0

        if idle:
            logger.debug("Swept %d idle phone hashes from audit store", len(idle))


# =============================================================================
# Factory Function
# =============================================================================

def create_audit_store(settings: Settings) -> AuditStore:
    """
    Create an audit store based on settings.

    Currently only supports in-memory storage.

    Args:
        settings: Application settings

    Returns:
        Configured AuditStore instance
    """
    logger.info(
        "Creating InMemoryAuditStore: max_entries=%d",
        settings.audit_max_entries,
    )

    return InMemoryAuditStore(
        max_entries=settings.audit_max_entries,
        retention_seconds=settings.per_number_window_seconds,
    )
