"""
SafeStake Compliance Store

The store exclusively owns every ComplianceRecord and the self-exclusion set.
Components never hold on to a record: reads return snapshots, writes replace
the stored record in one step.

Mutating operations run inside `transaction(identity)`, which serialises all
writers for that identity. Snapshot reads do not take the identity lock and
never observe a half-written record.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from .records import ComplianceRecord, ExclusionEntry


class ComplianceStore(ABC):
    """
    Abstract interface for compliance state.

    Implementations must be:
    - Consistent (a single record is never torn)
    - Atomic (a failed transaction leaves no partial writes)
    """

    @abstractmethod
    def get_record(self, identity: bytes) -> Optional[ComplianceRecord]:
        """Return a snapshot of the record, or None."""
        pass

    @abstractmethod
    def put_record(self, record: ComplianceRecord) -> None:
        """Insert or replace the record for record.identity."""
        pass

    @abstractmethod
    def get_exclusion(self, identity: bytes) -> Optional[ExclusionEntry]:
        """Return the exclusion entry, or None if the identity never self-excluded."""
        pass

    @abstractmethod
    def put_exclusion(self, entry: ExclusionEntry) -> None:
        """Insert or replace an exclusion entry. Entries are never deleted."""
        pass

    @abstractmethod
    def transaction(self, identity: bytes):
        """Context manager serialising writers for one identity."""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, int]:
        """Counts for health reporting."""
        pass

    def is_excluded(self, identity: bytes) -> bool:
        return self.get_exclusion(identity) is not None


class InMemoryComplianceStore(ComplianceStore):
    """
    In-memory compliance store.

    Suitable for tests and for hosts that already persist state themselves.
    Not persistent across restarts.
    """

    def __init__(self):
        self._records: Dict[bytes, ComplianceRecord] = {}
        self._exclusions: Dict[bytes, ExclusionEntry] = {}
        self._lock = threading.Lock()
        # identity -> [lock, number of transactions using it]
        self._identity_locks: Dict[bytes, List] = {}

    def get_record(self, identity: bytes) -> Optional[ComplianceRecord]:
        with self._lock:
            record = self._records.get(identity)
            return record.copy() if record is not None else None

    def put_record(self, record: ComplianceRecord) -> None:
        with self._lock:
            self._records[record.identity] = record.copy()

    def get_exclusion(self, identity: bytes) -> Optional[ExclusionEntry]:
        with self._lock:
            return self._exclusions.get(identity)

    def put_exclusion(self, entry: ExclusionEntry) -> None:
        with self._lock:
            self._exclusions[entry.identity] = entry

    @contextmanager
    def transaction(self, identity: bytes) -> Iterator[None]:
        # Each lock lives only while a transaction holds or waits on it.
        with self._lock:
            entry = self._identity_locks.get(identity)
            if entry is None:
                entry = self._identity_locks[identity] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._identity_locks[identity]

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "records_count": len(self._records),
                "exclusions_count": len(self._exclusions),
                "verified_count": sum(1 for r in self._records.values() if r.age_verified),
            }
