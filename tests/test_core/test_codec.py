"""Tests for store-boundary serialization."""

from entity_cache.codec import (
    KEY_FIELD,
    decode_record,
    decode_result,
    deserialize,
    encode_entity,
    encode_result,
    serialize,
)
from entity_cache.models import Key, KeyedEntity, QueryResult


class TestSerializeDeserialize:
    """Tests for serialize and deserialize functions."""

    def test_serialize_none(self) -> None:
        """Test None serializes to a JSON null, not an empty value."""
        assert serialize(None) == "null"
        assert deserialize("null") is None

    def test_deserialize_bytes(self) -> None:
        """Test deserializing bytes."""
        assert deserialize(b'{"key": "value"}') == {"key": "value"}


class TestEntityCodec:
    """Tests for entity marshalling."""

    def test_encode_puts_key_in_plain_field(self) -> None:
        """Test the Key becomes a plain field of the record."""
        entity = KeyedEntity(key=Key.from_path("User", 1, namespace="ns"), value={"name": "John"})
        record = encode_entity(entity)
        assert record["name"] == "John"
        assert record[KEY_FIELD] == {"namespace": "ns", "path": ["User", 1]}

    def test_encode_leaves_entity_untouched(self) -> None:
        """Test encoding does not mutate the entity value."""
        entity = KeyedEntity(key=Key.from_path("User", 1), value={"name": "John"})
        encode_entity(entity)
        assert KEY_FIELD not in entity.value

    def test_decode_restores_entity(self) -> None:
        """Test decoding moves the plain field back onto the Key."""
        entity = KeyedEntity(key=Key.from_path("User", "abc"), value={"age": 3})
        assert decode_record(encode_entity(entity)) == entity

    def test_result_survives_json(self, query_result: QueryResult) -> None:
        """Test an encoded result read back from JSON decodes to the original."""
        stored = deserialize(serialize(encode_result(query_result)))
        assert decode_result(stored) == query_result

    def test_decode_none(self) -> None:
        """Test a cached None decodes to None."""
        assert decode_result(None) is None
