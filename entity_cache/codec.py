"""Serialization at the store boundary.

Stores only persist plain values. Query results carry a Key per entity, so
before a result is written the Key is marshalled into a plain ``__key__``
field of each row, and read back onto a ``KeyedEntity`` when the row comes
out of the store.
"""

import json
from typing import Any

from entity_cache.models import Key, KeyedEntity, QueryResult

KEY_FIELD = "__key__"

PlainRecord = dict[str, Any]


def serialize(value: Any) -> str:
    """Serialize a value for a networked store.

    Args:
        value: Value to serialize.

    Returns:
        JSON string representation.
    """
    return json.dumps(value, default=str)


def deserialize(data: str | bytes) -> Any:
    """Deserialize a value read from a networked store.

    Args:
        data: Serialized data from cache.

    Returns:
        Deserialized value.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)


def encode_entity(entity: KeyedEntity) -> PlainRecord:
    """Flatten an entity and its Key into one plain record."""
    record = dict(entity.value)
    record[KEY_FIELD] = entity.key.model_dump(mode="json")
    return record


def decode_record(record: PlainRecord) -> KeyedEntity:
    """Rebuild the entity written by ``encode_entity``."""
    value = dict(record)
    raw_key = value.pop(KEY_FIELD)
    return KeyedEntity(key=Key.model_validate(raw_key), value=value)


def encode_result(result: QueryResult) -> list[Any]:
    """Encode a query result as ``[rows, info]``."""
    return [[encode_entity(e) for e in result.entities], dict(result.info)]


def decode_result(raw: Any) -> QueryResult | None:
    """Decode a stored ``[rows, info]`` pair. ``None`` passes through."""
    if raw is None:
        return None
    rows, info = raw
    return QueryResult(entities=[decode_record(r) for r in rows], info=info or {})
