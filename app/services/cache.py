import logging
import threading
import time
from typing import Callable, Protocol, TypeVar

import redis
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.core.config import Settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# generation counters must outlive the entries they guard
GENERATION_TTL_SECONDS = 24 * 60 * 60


class CacheError(Exception):
    pass


class CacheBackend(Protocol):
    """Key/value store with a per-key generation counter.

    Every invalidation bumps the key's generation. A fill carries the
    generation observed before the storage read and is dropped when a writer
    has bumped it since.
    """

    def get(self, key: str) -> str | None: ...

    def generation(self, key: str) -> int: ...

    def set_if_generation(self, key: str, value: str, ttl_seconds: int, generation: int) -> bool: ...

    def invalidate(self, *keys: str) -> None: ...


def generation_key(key: str) -> str:
    return f"gen:{key}"


# KEYS[1] entry, KEYS[2] its generation counter; ARGV value, ttl, expected generation
_FILL_SCRIPT = """
local current = redis.call('GET', KEYS[2])
if (current or '0') ~= ARGV[3] then
    return 0
end
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
return 1
"""


class RedisCache:
    def __init__(self, url: str) -> None:
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self._fill = self.client.register_script(_FILL_SCRIPT)

    def get(self, key: str) -> str | None:
        try:
            return self.client.get(key)
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc

    def generation(self, key: str) -> int:
        try:
            value = self.client.get(generation_key(key))
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc
        return int(value or 0)

    def set_if_generation(self, key: str, value: str, ttl_seconds: int, generation: int) -> bool:
        try:
            stored = self._fill(keys=[key, generation_key(key)], args=[value, ttl_seconds, str(generation)])
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc
        return bool(stored)

    def invalidate(self, *keys: str) -> None:
        if not keys:
            return
        try:
            with self.client.pipeline(transaction=True) as pipe:
                for key in keys:
                    pipe.incr(generation_key(key))
                    pipe.expire(generation_key(key), GENERATION_TTL_SECONDS)
                pipe.delete(*keys)
                pipe.execute()
        except redis.RedisError as exc:
            raise CacheError(str(exc)) from exc


class MemoryCache:
    """In-process TTL cache for tests and single-process deployments."""

    def __init__(self) -> None:
        self._items: dict[str, tuple[float, str]] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= time.monotonic():
                del self._items[key]
                return None
            return value

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def set_if_generation(self, key: str, value: str, ttl_seconds: int, generation: int) -> bool:
        with self._lock:
            if self._generations.get(key, 0) != generation:
                return False
            self._items[key] = (time.monotonic() + ttl_seconds, value)
            return True

    def invalidate(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._generations[key] = self._generations.get(key, 0) + 1
                self._items.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)


def school_key(school_id: str) -> str:
    return f"school:{school_id}"


def classroom_key(classroom_id: str) -> str:
    return f"classroom:{classroom_id}"


def classroom_list_key(school_id: str) -> str:
    return f"classrooms:{school_id}"


class EntityCache:
    """Read-through / write-invalidate cache of API representations.

    Storage stays the source of truth: read failures are reported as misses
    and write failures are logged, never raised. Writers only invalidate after
    commit; values enter the cache solely through ``read_model`` and
    ``read_list``, whose fill is discarded when a writer invalidated the key
    while storage was being read.
    """

    def __init__(self, backend: CacheBackend, ttl_seconds: int = 300) -> None:
        self.backend = backend
        self.ttl_seconds = ttl_seconds

    def read_model(self, key: str, model: type[ModelT], load: Callable[[], ModelT]) -> ModelT:
        raw = self._read(key)
        if raw is not None:
            try:
                return model.model_validate_json(raw)
            except ValidationError:
                logger.warning("Discarding undecodable cache entry %s", key)
                self.invalidate(key)

        generation = self._generation(key)
        value = load()
        self._fill(key, value.model_dump_json(), generation)
        return value

    def read_list(self, key: str, adapter: TypeAdapter, load: Callable[[], list]) -> list:
        raw = self._read(key)
        if raw is not None:
            try:
                return adapter.validate_json(raw)
            except ValidationError:
                logger.warning("Discarding undecodable cache entry %s", key)
                self.invalidate(key)

        generation = self._generation(key)
        values = load()
        self._fill(key, adapter.dump_json(values).decode("utf-8"), generation)
        return values

    def invalidate(self, *keys: str) -> None:
        try:
            self.backend.invalidate(*keys)
        except CacheError:
            logger.error("Cache invalidation failed for %s", ", ".join(keys), exc_info=True)

    def _read(self, key: str) -> str | None:
        try:
            return self.backend.get(key)
        except CacheError:
            logger.warning("Cache read failed for %s, falling back to storage", key, exc_info=True)
            return None

    def _generation(self, key: str) -> int | None:
        try:
            return self.backend.generation(key)
        except CacheError:
            logger.warning("Cache generation read failed for %s, skipping fill", key, exc_info=True)
            return None

    def _fill(self, key: str, payload: str, generation: int | None) -> None:
        if generation is None:
            return
        try:
            stored = self.backend.set_if_generation(key, payload, self.ttl_seconds, generation)
        except CacheError:
            logger.error("Cache write failed for %s", key, exc_info=True)
            return
        if not stored:
            logger.debug("Skipped cache fill for %s, invalidated during read", key)


def build_cache(settings: Settings) -> EntityCache:
    backend = settings.cache_backend.lower()
    if backend == "memory":
        return EntityCache(MemoryCache(), ttl_seconds=settings.cache_ttl_seconds)
    return EntityCache(RedisCache(settings.redis_url), ttl_seconds=settings.cache_ttl_seconds)
