"""Deterministic cache fingerprints for datastore Keys and Queries.

A fingerprint is built by concatenating the identifying parts of a Key or
Query in a fixed order and passing the result through a small
non-cryptographic string hash. Nothing is sorted: a Query whose filters
were added in a different order yields a different fingerprint.

Callers prepend the data-type prefix (``gck:`` / ``gcq:`` by default)
before using a fingerprint as a store key.
"""

from typing import Any

from entity_cache.errors import InvalidArgumentError
from entity_cache.models import Key, Query

SEPARATOR = ":%:"

HASH_SEED = 5381


def hash_string(value: str) -> str:
    """Hash a string to an unsigned 32-bit integer, rendered in decimal.

    Characters are consumed from the end of the string, each step doing
    ``hash = (hash * 33) ^ code_unit``. Code units are UTF-16, so strings
    outside the BMP hash the same way a JavaScript client would hash them.
    """
    encoded = value.encode("utf-16-le")
    result = HASH_SEED
    for i in range(len(encoded) - 2, -1, -2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        result = ((result * 33) ^ code_unit) & 0xFFFFFFFF
    return str(result)


def key_to_string(key: Key | None, hash: bool = True) -> str:  # noqa: A002
    """Convert a Key to its fingerprint.

    Args:
        key: The datastore Key.
        hash: Set to False to get the raw concatenation.

    Returns:
        Namespace followed by the path segments, hashed unless asked not to.

    Raises:
        InvalidArgumentError: If no key is passed.
    """
    if key is None:
        raise InvalidArgumentError("Key cannot be undefined.")

    raw = (key.namespace or "") + "".join(str(segment) for segment in key.path)
    return hash_string(raw) if hash else raw


def _value_to_string(value: Any) -> str:
    if isinstance(value, Key):
        return key_to_string(value, hash=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def query_to_string(query: Query | None, hash: bool = True) -> str:  # noqa: A002
    """Convert a Query to its fingerprint.

    Sections, in order: kinds, namespace, filters, group-by, limit, offset,
    orders, select, start cursor, end cursor.

    Args:
        query: The datastore Query.
        hash: Set to False to get the raw concatenation.

    Raises:
        InvalidArgumentError: If no query is passed.
    """
    if query is None:
        raise InvalidArgumentError("Query cannot be undefined.")

    sections = [
        "".join(query.kinds),
        query.namespace or "",
        "".join(f.name + f.op + _value_to_string(f.value) for f in query.filters),
        "".join(query.group_by),
        str(query.limit),
        str(query.offset),
        "".join(o.name + ("-" if o.descending else "+") for o in query.orders),
        "".join(query.select),
        query.start or "",
        query.end or "",
    ]
    raw = SEPARATOR.join(sections)
    return hash_string(raw) if hash else raw
