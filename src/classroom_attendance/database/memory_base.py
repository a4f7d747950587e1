from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from ..common.datetime_utils import now_local


@dataclass
class MemoryDatabase:
    """Process-local store with the same transactional contract as MySQL.

    Every repository call runs under one re-entrant lock, so a unit of work
    (read, decide, write) is serialized exactly like a row-locked transaction.
    """

    sessions: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    records: Dict[Tuple[int, int], Dict[str, Any]] = field(default_factory=dict)
    activity_logs: List[Dict[str, Any]] = field(default_factory=list)

    # external directory tables
    enrollments: Dict[int, Set[int]] = field(default_factory=dict)
    display_names: Dict[int, str] = field(default_factory=dict)

    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _seq: Dict[str, int] = field(default_factory=dict, repr=False)

    @contextmanager
    def transaction(self) -> Iterator["MemoryDatabase"]:
        with self._lock:
            yield self

    def next_id(self, table: str) -> int:
        self._seq[table] = self._seq.get(table, 0) + 1
        return self._seq[table]

    def now(self) -> datetime:
        return now_local()

    # ---- directory seeding helpers (dev/tests) ----
    def enroll(self, subject_id: int, *student_ids: int) -> None:
        with self._lock:
            self.enrollments.setdefault(int(subject_id), set()).update(int(s) for s in student_ids)

    def add_user(self, user_id: int, name: str) -> None:
        with self._lock:
            self.display_names[int(user_id)] = name

    def find_session_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        for row in self.sessions.values():
            if row["qr_token"] is not None and row["qr_token"] == token:
                return row
        return None
