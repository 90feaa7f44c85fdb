"""Data models for datastore keys, queries and results.

These mirror the shapes a Google Datastore style client hands around:
Keys made of a namespace and a kind/identifier path, Queries over one or
more entity kinds, and results that pair each entity with its Key.
"""

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

PathElement = str | int

_NO_VALUE: Any = object()


class Key(BaseModel):
    """Datastore key.

    Attributes:
        namespace: Optional namespace the entity lives in.
        path: Ordered kind/identifier segments, e.g. ``("User", 123)``.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str | None = None
    path: tuple[PathElement, ...]

    @classmethod
    def from_path(cls, *path: PathElement, namespace: str | None = None) -> "Key":
        """Build a key from its path segments."""
        return cls(namespace=namespace, path=tuple(path))


class Filter(BaseModel):
    """Property filter of a query. ``value`` may itself be a Key."""

    name: str
    op: str = "="
    value: Any = None


class Order(BaseModel):
    """Sort order of a query."""

    name: str
    descending: bool = False


class Query(BaseModel):
    """Datastore query.

    Filter order is part of the query identity: two queries with the same
    filters added in a different order are different queries for the cache.

    Attributes:
        kinds: Entity kinds the query targets.
        namespace: Optional namespace.
        filters: Property filters, in call order.
        group_by: Distinct-on fields.
        limit: Max results, -1 for none.
        offset: Results to skip, -1 for none.
        orders: Sort orders, in call order.
        select: Projected fields.
        start: Start cursor.
        end: End cursor.
    """

    kinds: list[str]
    namespace: str | None = None
    filters: list[Filter] = Field(default_factory=list)
    group_by: list[str] = Field(default_factory=list)
    limit: int = -1
    offset: int = -1
    orders: list[Order] = Field(default_factory=list)
    select: list[str] = Field(default_factory=list)
    start: str | None = None
    end: str | None = None

    def filter(self, name: str, op: Any, value: Any = _NO_VALUE) -> "Query":
        """Add a filter. ``filter(name, value)`` means equality."""
        if value is _NO_VALUE:
            op, value = "=", op
        self.filters.append(Filter(name=name, op=op, value=value))
        return self

    def where(self, name: str, value: Any) -> "Query":
        """Add an equality filter."""
        return self.filter(name, "=", value)

    def has_ancestor(self, key: Key) -> "Query":
        """Restrict results to descendants of ``key``."""
        return self.filter("__key__", "HAS_ANCESTOR", key)

    def order(self, name: str, descending: bool = False) -> "Query":
        """Add a sort order."""
        self.orders.append(Order(name=name, descending=descending))
        return self


class KeyedEntity(BaseModel):
    """An entity value together with the Key it was read under."""

    key: Key
    value: dict[str, Any]


class QueryResult(BaseModel):
    """Rows returned by a query plus page metadata.

    Attributes:
        entities: Result rows, each carrying its Key.
        info: Page metadata (e.g. ``more_results``, ``end_cursor``).
    """

    entities: list[KeyedEntity] = Field(default_factory=list)
    info: dict[str, Any] = Field(default_factory=dict)


class DatastoreClient(Protocol):
    """Client used as the default fetch source when none is passed."""

    async def get(self, keys: list[Key]) -> list[KeyedEntity | None]:
        """Look up entities by key."""
        ...

    async def run_query(self, query: Query) -> QueryResult:
        """Run a query."""
        ...
