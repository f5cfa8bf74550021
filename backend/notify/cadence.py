"""Cadence gate for routine "all healthy" notices.

The routine notice is sent at most once per interval. The last-sent time is a
single ISO-8601 timestamp per notification purpose, held in a durable store
shared by independent, stateless invocations.

Check and commit are one call: when the notice is due, the store is advanced
to "now" before the notice is sent, and a failed send does not roll it back.
The write is a compare-and-set against the value just read, so two overlapping
invocations cannot both arm the same interval; the loser reports "not due".
"""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

import redis

from notify.config import NotifySettings
from notify.errors import CadenceStoreError


UTC = timezone.utc

logger = logging.getLogger("agentpro.notify")

Clock = Callable[[], datetime]


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def parse_timestamp(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw.strip())
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


class CadenceStore(Protocol):
    def read(self, key: str) -> Optional[datetime]: ...

    def compare_and_set(self, key: str, expected: Optional[datetime], new: datetime) -> bool: ...


class FileCadenceStore:
    """One text file per key; writes are guarded by an exclusive lock file."""

    STALE_LOCK_SECONDS = 600

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.txt"

    def read(self, key: str) -> Optional[datetime]:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            return parse_timestamp(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CadenceStoreError(f"Cannot read cadence state {path}: {e}") from e

    def _acquire(self, lock: Path) -> bool:
        try:
            fd = os.open(lock, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            try:
                age = time.time() - lock.stat().st_mtime
            except FileNotFoundError:
                return self._acquire(lock)
            if age < self.STALE_LOCK_SECONDS:
                return False
            lock.unlink(missing_ok=True)
            return self._acquire(lock)
        os.close(fd)
        return True

    def compare_and_set(self, key: str, expected: Optional[datetime], new: datetime) -> bool:
        path = self._path(key)
        lock = path.with_suffix(".lock")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            if not self._acquire(lock):
                return False
            try:
                if self.read(key) != expected:
                    return False
                tmp = path.with_suffix(".tmp")
                tmp.write_text(new.astimezone(UTC).isoformat(), encoding="utf-8")
                os.replace(tmp, path)
                return True
            finally:
                lock.unlink(missing_ok=True)
        except OSError as e:
            raise CadenceStoreError(f"Cannot write cadence state {path}: {e}") from e


class RedisCadenceStore:
    """Redis-backed store; compare-and-set uses WATCH/MULTI."""

    PREFIX = "agentpro:cadence:"

    def __init__(self, client: "redis.Redis") -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCadenceStore":
        return cls(redis.from_url(url))

    def _name(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    @staticmethod
    def _decode(raw: object) -> Optional[datetime]:
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return parse_timestamp(str(raw))

    def read(self, key: str) -> Optional[datetime]:
        try:
            return self._decode(self._client.get(self._name(key)))
        except (redis.RedisError, ValueError) as e:
            raise CadenceStoreError(f"Cannot read cadence key {key!r}: {e}") from e

    def compare_and_set(self, key: str, expected: Optional[datetime], new: datetime) -> bool:
        name = self._name(key)
        try:
            with self._client.pipeline() as pipe:
                try:
                    pipe.watch(name)
                    if self._decode(pipe.get(name)) != expected:
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.set(name, new.astimezone(UTC).isoformat())
                    pipe.execute()
                    return True
                except redis.WatchError:
                    return False
        except (redis.RedisError, ValueError) as e:
            raise CadenceStoreError(f"Cannot write cadence key {key!r}: {e}") from e


class CadenceGate:
    def __init__(self, store: CadenceStore, *, interval_days: int, clock: Clock | None = None) -> None:
        self._store = store
        self._interval = timedelta(days=interval_days)
        self._clock = clock or _utcnow

    def is_routine_notice_due(self, key: str) -> bool:
        now = self._clock()
        try:
            last = self._store.read(key)
            if last is not None and now - last < self._interval:
                return False
            if not self._store.compare_and_set(key, last, now):
                _log({"event": "cadence_race_lost", "key": key})
                return False
        except CadenceStoreError as e:
            _log({"event": "cadence_store_failed", "key": key, "error": str(e)})
            return False
        _log({"event": "cadence_armed", "key": key, "previous": last.isoformat() if last else None, "now": now.isoformat()})
        return True


def build_cadence_store(settings: NotifySettings) -> CadenceStore:
    if settings.cadence_backend == "redis":
        return RedisCadenceStore.from_url(settings.redis_url)
    if settings.cadence_backend == "file":
        return FileCadenceStore(settings.cadence_dir)
    raise RuntimeError(f"Unknown AP_CADENCE_BACKEND {settings.cadence_backend!r} (expected 'file' or 'redis').")
