"""Per-identity mutual exclusion for request creation."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(slots=True)
class _KeyedLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class IdentityLocks:
    """Keyed locks over canonical names.

    Two phenotypes that match by name share at least one key, so holding every
    key of a candidate serialises all work on equivalent candidates. Keys are
    taken in sorted order, which keeps concurrent holders deadlock free.
    Idle locks are dropped so the registry does not grow without bound.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyedLock] = {}

    @contextmanager
    def hold(self, keys: Iterable[str]) -> Iterator[None]:
        checked_out: list[str] = []
        acquired: list[_KeyedLock] = []
        try:
            for key in sorted(set(keys)):
                entry = self._checkout(key)
                checked_out.append(key)
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for key in checked_out:
                self._checkin(key)

    def active_keys(self) -> frozenset[str]:
        with self._guard:
            return frozenset(self._locks)

    def _checkout(self, key: str) -> _KeyedLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyedLock()
                self._locks[key] = entry
            entry.holders += 1
            return entry

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry.holders -= 1
            if entry.holders <= 0:
                del self._locks[key]
