"""Per-doctor exclusive access for booking, cancellation and doctor removal.

Each operation touches exactly one doctor, so there is no lock ordering to
get wrong. Waiting is bounded; a caller that cannot get the doctor's scope in
time gets ``LockUnavailable`` and must not proceed.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock

from clinic_scheduler.scheduling.errors import LockUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class _DoctorLock:
    lock: Lock = field(default_factory=Lock)
    users: int = 0


class DoctorLockProvider:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout
        self._registry_lock = Lock()
        self._locks: dict[int, _DoctorLock] = {}

    def _checkout(self, doctor_id: int) -> _DoctorLock:
        with self._registry_lock:
            entry = self._locks.setdefault(doctor_id, _DoctorLock())
            entry.users += 1
            return entry

    def _checkin(self, doctor_id: int, entry: _DoctorLock) -> None:
        with self._registry_lock:
            entry.users -= 1
            # Only drop the entry once nobody holds or waits on it.
            if entry.users == 0 and self._locks.get(doctor_id) is entry:
                del self._locks[doctor_id]

    @contextmanager
    def scope(self, doctor_id: int) -> Iterator[None]:
        entry = self._checkout(doctor_id)
        try:
            if not entry.lock.acquire(timeout=self.timeout):
                logger.warning('Gave up waiting %.2fs for doctor %s', self.timeout, doctor_id)
                raise LockUnavailable(doctor_id, self.timeout)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(doctor_id, entry)

    def active_scopes(self) -> int:
        with self._registry_lock:
            return len(self._locks)
