"""Shared fixtures: sample keys, entities, queries and an in-memory Redis fake."""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from entity_cache.models import Key, KeyedEntity, Query, QueryResult


class FakePipeline:
    """Queues commands and runs them in order on ``execute``."""

    def __init__(self, redis: "FakeRedis", transaction: bool) -> None:
        self.redis = redis
        self.transaction = transaction
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc: object) -> None:
        self._commands.clear()

    def __getattr__(self, name: str) -> Callable[..., "FakePipeline"]:
        def queue(*args: Any, **kwargs: Any) -> "FakePipeline":
            self._commands.append((name, args, kwargs))
            return self

        return queue

    async def execute(self) -> list[Any]:
        self.redis.executed.append([name for name, _, _ in self._commands])
        results = []
        for name, args, kwargs in self._commands:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self._commands.clear()
        return results


class FakeRedis:
    """The subset of ``redis.asyncio.Redis`` used by the cache.

    Strings and sets share one keyspace; ``expirations`` records the ``ex``
    passed to each ``set``.
    """

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.expirations: dict[str, int | None] = {}
        self.executed: list[list[str]] = []
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.strings.get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [self.strings.get(k) for k in keys]

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.strings[key] = value
        self.expirations[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self.strings.pop(key, None) is not None:
                deleted += 1
            if self.sets.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def sadd(self, key: str, *members: str) -> int:
        bucket = self.sets.setdefault(key, set())
        added = len(set(members) - bucket)
        bucket.update(members)
        return added

    async def smembers(self, key: str) -> "set[str]":
        return set(self.sets.get(key, set()))

    async def flushdb(self) -> bool:
        self.strings.clear()
        self.sets.clear()
        return True

    async def aclose(self) -> None:
        self.closed = True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Create an empty Redis fake."""
    return FakeRedis()


@pytest.fixture
def keys() -> list[Key]:
    """Sample keys, the first one namespaced, the last one nested."""
    return [
        Key.from_path("User", 111, namespace="ns"),
        Key.from_path("User", 222),
        Key.from_path("User", 333),
        Key.from_path("User", 444),
        Key.from_path("GranDad", "John", "Dad", "Mick", "User", 555),
    ]


@pytest.fixture
def entities(keys: list[Key]) -> list[KeyedEntity]:
    """One entity per sample key."""
    names = ["John", "Mick", "Carol", "Greg", "Tito"]
    return [KeyedEntity(key=k, value={"name": n}) for k, n in zip(keys, names, strict=True)]


@pytest.fixture
def company_query() -> Query:
    """Query using every part of the query shape."""
    return (
        Query(
            kinds=["Company"],
            namespace="com.domain.dev",
            group_by=["field1", "field2"],
            limit=10,
            offset=5,
            select=["name", "size"],
            start="X",
            end="Y",
        )
        .where("name", "Sympresa")
        .filter("field1", "<", 123)
        .filter("field2", ">", 789)
        .has_ancestor(Key.from_path("Parent", 123))
        .order("size", descending=True)
    )


@pytest.fixture
def user_query() -> Query:
    """Simple query over User."""
    return Query(kinds=["User"]).where("name", "john").order("phone")


@pytest.fixture
def query_result(entities: list[KeyedEntity]) -> QueryResult:
    """Result rows for a User query."""
    return QueryResult(entities=entities[1:3], info={"more_results": "NO_MORE_RESULTS"})


@pytest.fixture
def datastore_fetch(
    entities: list[KeyedEntity],
) -> Callable[[list[Key]], Awaitable[list[KeyedEntity | None]]]:
    """Fetch returning the known entities for the requested keys, in reverse order."""
    by_key = {e.key: e for e in entities}

    async def fetch(requested: list[Key]) -> list[KeyedEntity | None]:
        return [by_key.get(k) for k in reversed(requested)]

    return fetch
