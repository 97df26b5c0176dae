"""In-process brute-force guard for the password login.

Counters live in memory and reset when the process restarts; this is a
best-effort throttle, not a durable lockout.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request
from loguru import logger

from civicdesk.core.config import settings


@dataclass
class AttemptRecord:
    count: int
    first_attempt: float
    locked_until: Optional[float] = None


def client_ip(request: Request) -> str:
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        return forwarded.split(',')[0].strip()
    real_ip = request.headers.get('x-real-ip')
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return 'unknown'


def attempt_key(email: str, ip: str) -> str:
    return f"{email.strip().lower()}:{ip}"


def _mask(key: str) -> str:
    return key.split(':', 1)[0][:3] + '***'


class LoginAttemptLimiter:
    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        lockout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._records: dict[str, AttemptRecord] = {}
        self._lock = threading.Lock()

    def _current(self, key: str, now: float) -> Optional[AttemptRecord]:
        record = self._records.get(key)
        if record is None:
            return None
        if record.locked_until is not None:
            if now > record.locked_until:
                self._records.pop(key, None)
                return None
            return record
        if now - record.first_attempt > self.window_seconds:
            self._records.pop(key, None)
            return None
        return record

    def is_locked(self, key: str) -> bool:
        with self._lock:
            record = self._current(key, self._clock())
            return bool(record and record.locked_until is not None)

    def remaining_attempts(self, key: str) -> int:
        with self._lock:
            record = self._current(key, self._clock())
            if record is None:
                return self.max_attempts
            return max(0, self.max_attempts - record.count)

    def record_failure(self, key: str) -> int:
        """Count a failed attempt and return how many remain before lockout."""
        with self._lock:
            now = self._clock()
            record = self._current(key, now)
            if record is None:
                record = AttemptRecord(count=0, first_attempt=now)
                self._records[key] = record
            record.count += 1
            if record.count >= self.max_attempts:
                record.locked_until = now + self.lockout_seconds
                logger.warning('login.locked', key=_mask(key), attempts=record.count)
            return max(0, self.max_attempts - record.count)

    def record_success(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()


login_limiter = LoginAttemptLimiter(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    window_seconds=settings.LOGIN_ATTEMPT_WINDOW_MINUTES * 60,
    lockout_seconds=settings.LOGIN_LOCKOUT_MINUTES * 60,
)
