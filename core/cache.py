# core/cache.py
import os
import json
import asyncio
import sqlite3
import datetime
from contextlib import closing
from typing import Any, Awaitable, Callable, Dict, Optional

import pytz

from .models import FetchResult
from .logger import get_logger

logger = get_logger(__name__)

CACHE_DIR = os.getenv("CACHE_DIR", ".cache")
CACHE_FILE = "components.sqlite3"
CACHE_RETENTION_HOURS = float(os.getenv("CACHE_RETENTION_HOURS", "24"))
CACHE_FRESHNESS_MINUTES = float(os.getenv("CACHE_FRESHNESS_MINUTES", "60"))

_RESERVED = (
    ("@", "--AT--"),
    ("/", "--SLASH--"),
)


def normalize_key(raw_key: str) -> str:
    """
    Map a lookup identifier such as ``npm-@scope/name`` to a storage-safe key.
    """
    key = raw_key
    for char, token in _RESERVED:
        key = key.replace(char, token)
    return key


def now_utc() -> datetime.datetime:
    return datetime.datetime.now(tz=pytz.UTC)


class DiskCache:
    """
    Key/value store kept in a sqlite file under ``directory``.

    Entries older than ``freshness`` read as misses; entries older than
    ``retention`` are deleted by ``prune``. Read faults are misses, write
    faults are logged and dropped.
    """

    def __init__(
        self,
        directory: str = CACHE_DIR,
        retention: datetime.timedelta = datetime.timedelta(hours=CACHE_RETENTION_HOURS),
        freshness: datetime.timedelta = datetime.timedelta(minutes=CACHE_FRESHNESS_MINUTES),
    ):
        if freshness > retention:
            raise ValueError(
                f"freshness window ({freshness}) must not exceed retention window ({retention})"
            )
        self.directory = directory
        self.retention = retention
        self.freshness = freshness
        os.makedirs(directory, exist_ok=True)
        self.path = os.path.join(directory, CACHE_FILE)
        self.ensure_db()
        self.prune()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path, timeout=10)

    def ensure_db(self) -> None:
        try:
            with closing(self._connect()) as con:
                con.execute(
                    """
                    CREATE TABLE IF NOT EXISTS entries (
                        key TEXT PRIMARY KEY,
                        data TEXT,
                        created_at TEXT
                    )
                """
                )
                con.commit()
        except sqlite3.Error as e:
            logger.warning("Could not initialize cache at %s: %s", self.path, e)

    def prune(self) -> int:
        """Delete entries past the retention window; returns how many went."""
        cutoff = (now_utc() - self.retention).isoformat()
        try:
            with closing(self._connect()) as con:
                cur = con.execute("DELETE FROM entries WHERE created_at < ?", (cutoff,))
                con.commit()
                removed = cur.rowcount
        except sqlite3.Error as e:
            logger.warning("Could not prune cache at %s: %s", self.path, e)
            return 0
        if removed:
            logger.debug("Pruned %d expired cache entries.", removed)
        return removed

    def get(self, key: str) -> Optional[Dict[str, str]]:
        try:
            with closing(self._connect()) as con:
                row = con.execute(
                    "SELECT data, created_at FROM entries WHERE key=?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.debug("Cache read failed for %s: %s", key, e)
            return None

        if row is None:
            return None

        data, created_at = row
        try:
            created = datetime.datetime.fromisoformat(created_at)
        except (TypeError, ValueError):
            logger.debug("Cache entry %s has a bad timestamp %r", key, created_at)
            return None

        if now_utc() - created > self.freshness:
            return None
        return {"data": data, "key": key}

    def set(self, key: str, value: Dict[str, str]) -> None:
        try:
            with closing(self._connect()) as con:
                con.execute(
                    """
                    INSERT INTO entries (key, data, created_at)
                    VALUES (?,?,?)
                    ON CONFLICT(key) DO UPDATE SET
                        data=excluded.data,
                        created_at=excluded.created_at
                """,
                    (key, value["data"], now_utc().isoformat()),
                )
                con.commit()
        except sqlite3.Error as e:
            logger.warning("Cache write failed for %s: %s", key, e)


async def get_data(
    cache: DiskCache,
    cache_key: str,
    value_getter: Callable[[], Awaitable[FetchResult]],
) -> Dict[str, Any]:
    """
    Return the cached record for ``cache_key`` or compute it with
    ``value_getter``. Only successful results are stored.
    """
    key = normalize_key(cache_key)

    # sqlite may wait on another process holding the lock; keep the loop free
    try:
        cached = await asyncio.to_thread(cache.get, key)
        if cached is not None:
            value = json.loads(cached["data"])
            if isinstance(value, dict):
                return value
            logger.debug("Ignoring cache entry %s holding %s", key, type(value).__name__)
    except (KeyError, TypeError, ValueError) as e:
        logger.debug("Ignoring unreadable cache entry %s: %s", key, e)

    result = await value_getter()
    value = result.record.to_dict()
    if result.ok:
        await asyncio.to_thread(cache.set, key, {"data": json.dumps(value), "key": key})
    else:
        logger.debug("Not caching failed lookup %s: %s", key, result.error)
    return value
