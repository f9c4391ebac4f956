"""
OTP Store - TTL-capable key/value storage for one-time passcodes

Two backends share one interface:

- InMemoryOtpStore: process-local dict behind an asyncio.Lock, with a
  background sweep that drops expired records on a fixed interval.
- RedisOtpStore: JSON values with native key expiry; the sweep is a no-op.

Every read and delete for a key is atomic with respect to the sweep, so a
record removed by expiry simply reads as absent.

Usage:
    store = InMemoryOtpStore()
    await store.start_cleanup_task()

    await store.put(email, OtpRecord(code="483920", expires_at=..., attempts=0), ttl_seconds=300)
    record = await store.get(email)
    consumed = await store.compare_and_delete(email, record)
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from app.core.config import settings
from app.core.exceptions import OtpStoreError
from app.core.logging_config import logger


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OtpRecord:
    """A stored passcode for one email address"""
    code: str
    expires_at: datetime
    attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def with_failed_attempt(self) -> "OtpRecord":
        return replace(self, attempts=self.attempts + 1)

    def to_json(self) -> str:
        return json.dumps({
            "otp": self.code,
            "expiresAt": self.expires_at.isoformat(),
            "attempts": self.attempts,
        })

    @classmethod
    def from_json(cls, raw: str) -> "OtpRecord":
        data = json.loads(raw)
        return cls(
            code=data["otp"],
            expires_at=datetime.fromisoformat(data["expiresAt"]),
            attempts=int(data.get("attempts", 0)),
        )


class OtpStore(ABC):
    """Interface for OTP persistence"""

    @abstractmethod
    async def put(self, key: str, record: OtpRecord, ttl_seconds: int) -> None:
        """Store a record, replacing any previous one for the key"""

    @abstractmethod
    async def get(self, key: str) -> Optional[OtpRecord]:
        ...

    @abstractmethod
    async def update(self, key: str, record: OtpRecord) -> bool:
        """Replace an existing record keeping its expiry; False if the key is gone"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def compare_and_delete(self, key: str, expected: OtpRecord) -> bool:
        """Delete only if the stored record still carries the expected code"""

    async def sweep_expired(self) -> int:
        """Remove expired records, returns how many were removed"""
        return 0

    async def connect(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def start_cleanup_task(self) -> None:
        return None

    async def stop_cleanup_task(self) -> None:
        return None

    async def close(self) -> None:
        await self.stop_cleanup_task()


class InMemoryOtpStore(OtpStore):
    """
    Process-local OTP storage.

    - Dict keyed by email, guarded by an asyncio.Lock
    - Background sweep every cleanup_interval seconds
    - Records also carry their own expiry, checked on verify
    """

    def __init__(
        self,
        cleanup_interval: int = settings.OTP_CLEANUP_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ):
        self.cleanup_interval = cleanup_interval
        self.clock = clock
        self._records: Dict[str, OtpRecord] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._records)

    async def put(self, key: str, record: OtpRecord, ttl_seconds: int) -> None:
        async with self._lock:
            self._records[key] = record

    async def get(self, key: str) -> Optional[OtpRecord]:
        async with self._lock:
            return self._records.get(key)

    async def update(self, key: str, record: OtpRecord) -> bool:
        async with self._lock:
            if key not in self._records:
                return False
            self._records[key] = record
            return True

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._records.pop(key, None)

    async def compare_and_delete(self, key: str, expected: OtpRecord) -> bool:
        async with self._lock:
            current = self._records.get(key)
            if current is None or current.code != expected.code:
                return False
            del self._records[key]
            return True

    async def sweep_expired(self) -> int:
        now = self.clock()
        async with self._lock:
            expired = [key for key, record in self._records.items() if record.is_expired(now)]
            for key in expired:
                del self._records[key]
        if expired:
            logger.info(f"[OtpStore] Swept {len(expired)} expired OTP record(s)")
        return len(expired)

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                await self.sweep_expired()
            except Exception as e:
                logger.error(f"[OtpStore] Cleanup sweep failed: {e}", exc_info=True)

    async def start_cleanup_task(self) -> None:
        """Start the periodic expiry sweep (idempotent)"""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info(f"[OtpStore] Started OTP cleanup task ({self.cleanup_interval}s interval)")

    async def stop_cleanup_task(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("[OtpStore] Stopped OTP cleanup task")


# Deletes KEYS[1] only if its stored JSON still holds the expected code
_COMPARE_AND_DELETE_LUA = """
local raw = redis.call('GET', KEYS[1])
if not raw then
    return 0
end
local ok, record = pcall(cjson.decode, raw)
if ok and record['otp'] == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class RedisOtpStore(OtpStore):
    """OTP storage in Redis; expiry is handled by key TTLs"""

    KEY_PREFIX = "otp:"

    def __init__(self, redis_client):
        self.redis_client = redis_client

    def _key(self, email: str) -> str:
        return f"{self.KEY_PREFIX}{email}"

    async def _run(self, operation: str, coro):
        from redis.exceptions import RedisError

        try:
            return await coro
        except RedisError as e:
            logger.error(f"[OtpStore] Redis {operation} failed: {e}")
            raise OtpStoreError(operation, cause=str(e)) from e

    async def put(self, key: str, record: OtpRecord, ttl_seconds: int) -> None:
        await self._run("SET", self.redis_client.client.set(self._key(key), record.to_json(), ex=ttl_seconds))

    async def get(self, key: str) -> Optional[OtpRecord]:
        raw = await self._run("GET", self.redis_client.client.get(self._key(key)))
        return OtpRecord.from_json(raw) if raw else None

    async def update(self, key: str, record: OtpRecord) -> bool:
        # XX: only when the key still exists, KEEPTTL: preserve the original expiry
        result = await self._run(
            "SET",
            self.redis_client.client.set(self._key(key), record.to_json(), xx=True, keepttl=True)
        )
        return bool(result)

    async def delete(self, key: str) -> None:
        await self._run("DEL", self.redis_client.client.delete(self._key(key)))

    async def compare_and_delete(self, key: str, expected: OtpRecord) -> bool:
        deleted = await self._run(
            "EVAL",
            self.redis_client.client.eval(_COMPARE_AND_DELETE_LUA, 1, self._key(key), expected.code)
        )
        return bool(deleted)

    async def connect(self) -> None:
        await self.redis_client.connect()

    async def ping(self) -> bool:
        return await self.redis_client.ping()

    async def close(self) -> None:
        await self.redis_client.disconnect()


def create_otp_store(backend: str = settings.OTP_STORE_BACKEND) -> OtpStore:
    """Build the configured OTP store (call connect() before use)"""
    if backend == "memory":
        return InMemoryOtpStore()
    if backend == "redis":
        from app.core.redis_client import RedisClient
        return RedisOtpStore(RedisClient())
    raise ValueError(f"Unknown OTP_STORE_BACKEND '{backend}' (expected 'memory' or 'redis')")
