import abc
import json
import time
import typing
import logging
import redis.asyncio
import ninebooks.config
import ninebooks.models.books

logger = logging.getLogger(__name__)

SearchResults = typing.List[ninebooks.models.books.BookSearchResult]


class CacheEntry(typing.NamedTuple):
    value: SearchResults
    expires_at: float


class BookSearchCache(abc.ABC):
    """Key -> search results store with an absolute expiry per entry."""

    @abc.abstractmethod
    async def get(self, key: str) -> typing.Optional[CacheEntry]:
        ...

    @abc.abstractmethod
    async def set(self, key: str, value: SearchResults, ttl: int) -> None:
        ...

    @abc.abstractmethod
    async def evict(self, key: str) -> None:
        ...

    @abc.abstractmethod
    async def clear(self) -> None:
        ...


class InMemoryBookSearchCache(BookSearchCache):
    def __init__(self, clock: typing.Callable[[], float] = time.time):
        self._clock = clock
        self._entries: typing.Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> typing.Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    async def set(self, key: str, value: SearchResults, ttl: int) -> None:
        self._entries[key] = CacheEntry(list(value), self._clock() + ttl)

    async def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisBookSearchCache(BookSearchCache):
    """Shared cache backed by Redis. Failures read as misses."""

    def __init__(
        self,
        client: redis.asyncio.Redis,
        prefix: str = "book_search:",
        clock: typing.Callable[[], float] = time.time
    ):
        self._client = client
        self._prefix = prefix
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> typing.Optional[CacheEntry]:
        try:
            async with self._client.pipeline(transaction=False) as pipe:
                pipe.get(self._key(key))
                pipe.pttl(self._key(key))
                raw, ttl_ms = await pipe.execute()
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {str(e)}")
            return None

        if not raw or ttl_ms is None or ttl_ms < 0:
            return None

        try:
            value = [
                ninebooks.models.books.BookSearchResult.model_validate(item)
                for item in json.loads(raw)
            ]
        except (ValueError, TypeError) as e:
            logger.error(f"Discarding corrupt cache entry {key}: {str(e)}")
            await self.evict(key)
            return None

        return CacheEntry(value, self._clock() + ttl_ms / 1000.0)

    async def set(self, key: str, value: SearchResults, ttl: int) -> None:
        try:
            await self._client.setex(
                self._key(key),
                ttl,
                json.dumps([item.model_dump() for item in value])
            )
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {str(e)}")

    async def evict(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {str(e)}")

    async def clear(self) -> None:
        try:
            keys = [key async for key in self._client.scan_iter(match=f"{self._prefix}*", count=100)]
            if keys:
                await self._client.delete(*keys)
        except Exception as e:
            logger.error(f"Redis clear error for prefix {self._prefix}: {str(e)}")


redis_client: redis.asyncio.Redis = None
book_cache: BookSearchCache = None


async def init_redis() -> None:
    global redis_client

    redis_client = redis.asyncio.from_url(
        ninebooks.config.settings.redis_url,
        max_connections=ninebooks.config.settings.redis_max_connections,
        decode_responses=True
    )

    try:
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Redis connection failed: {str(e)}")
        raise


async def close_redis() -> None:
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


async def init_book_cache() -> BookSearchCache:
    global book_cache

    if ninebooks.config.settings.book_cache_backend == "redis":
        await init_redis()
        book_cache = RedisBookSearchCache(
            redis_client,
            prefix=ninebooks.config.settings.book_cache_key_prefix
        )
    else:
        book_cache = InMemoryBookSearchCache()

    logger.info(f"Book search cache backend: {ninebooks.config.settings.book_cache_backend}")
    return book_cache
