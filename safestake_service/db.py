"""
Database module for the SafeStake service.

SQLite-backed compliance store. Records and exclusion entries are stored as
JSON documents keyed by identity hex; timestamps may exceed SQLite's signed
64-bit integer range, so they stay inside the JSON.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from safestake.identity import identity_hex
from safestake.records import ComplianceRecord, ExclusionEntry
from safestake.store import ComplianceStore


class SqliteComplianceStore(ComplianceStore):
    """
    Compliance store persisted in SQLite.

    A single connection is shared behind a re-entrant lock. Writes issued
    inside `transaction()` are committed together when the outermost
    transaction exits and rolled back if it raises.
    """

    def __init__(self, db_path: Union[str, Path]):
        self._db_path = Path(db_path)
        self._lock = threading.RLock()
        self._depth = 0

        if str(db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.row_factory = sqlite3.Row
        self._conn = conn

        self.init_db()

    def init_db(self) -> None:
        """
        Initialize database schema.
        Safe to call multiple times (uses IF NOT EXISTS).
        """
        with self._lock:
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS compliance_records (
                identity TEXT PRIMARY KEY,
                record_json TEXT NOT NULL,
                age_verified INTEGER NOT NULL DEFAULT 0
            );""")
            self._conn.execute("""
            CREATE TABLE IF NOT EXISTS exclusions (
                identity TEXT PRIMARY KEY,
                entry_json TEXT NOT NULL
            );""")
            self._conn.commit()

    @contextmanager
    def transaction(self, identity: bytes) -> Iterator[None]:
        with self._lock:
            self._depth += 1
            try:
                yield
                if self._depth == 1:
                    self._conn.commit()
            except Exception:
                if self._depth == 1:
                    self._conn.rollback()
                raise
            finally:
                self._depth -= 1

    def _autocommit(self) -> None:
        if self._depth == 0:
            self._conn.commit()

    def get_record(self, identity: bytes) -> Optional[ComplianceRecord]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT record_json FROM compliance_records WHERE identity=?",
                (identity_hex(identity),)
            )
            row = cur.fetchone()
        return ComplianceRecord.from_dict(json.loads(row["record_json"])) if row else None

    def put_record(self, record: ComplianceRecord) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO compliance_records(identity, record_json, age_verified) VALUES(?,?,?)",
                (identity_hex(record.identity), json.dumps(record.to_dict(), sort_keys=True), int(record.age_verified))
            )
            self._autocommit()

    def get_exclusion(self, identity: bytes) -> Optional[ExclusionEntry]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT entry_json FROM exclusions WHERE identity=?",
                (identity_hex(identity),)
            )
            row = cur.fetchone()
        return ExclusionEntry.from_dict(json.loads(row["entry_json"])) if row else None

    def put_exclusion(self, entry: ExclusionEntry) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO exclusions(identity, entry_json) VALUES(?,?)",
                (identity_hex(entry.identity), json.dumps(entry.to_dict(), sort_keys=True))
            )
            self._autocommit()

    def stats(self) -> Dict[str, int]:
        """Get database statistics for monitoring."""
        with self._lock:
            records = self._conn.execute("SELECT COUNT(*) AS cnt FROM compliance_records").fetchone()["cnt"]
            exclusions = self._conn.execute("SELECT COUNT(*) AS cnt FROM exclusions").fetchone()["cnt"]
            verified = self._conn.execute(
                "SELECT COUNT(*) AS cnt FROM compliance_records WHERE age_verified=1"
            ).fetchone()["cnt"]
        return {
            "records_count": records,
            "exclusions_count": exclusions,
            "verified_count": verified,
        }

    def reset(self) -> None:
        """
        Clear all tables but preserve schema.
        Used for test isolation.
        """
        with self._lock:
            self._conn.execute("DELETE FROM compliance_records")
            self._conn.execute("DELETE FROM exclusions")
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()
