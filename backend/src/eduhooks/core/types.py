"""Field type registry with storage types and value codecs."""

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable


def _identity(value: Any) -> Any:
    return value


def _encode_bool(value: Any) -> Any:
    if value is None:
        return None
    return 1 if value else 0


def _decode_bool(value: Any) -> Any:
    if value is None:
        return None
    return bool(value)


def _encode_datetime(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _decode_datetime(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


def _encode_json(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


@dataclass
class FieldType:
    name: str
    storage_type: str
    encode: Callable[[Any], Any] = _identity
    decode: Callable[[Any], Any] = _identity


# Built-in field types
FIELD_TYPES: dict[str, FieldType] = {
    "id": FieldType(name="id", storage_type="TEXT"),
    "string": FieldType(name="string", storage_type="TEXT"),
    "name": FieldType(name="name", storage_type="TEXT"),
    "text": FieldType(name="text", storage_type="TEXT"),
    "email": FieldType(name="email", storage_type="TEXT"),
    "slug": FieldType(name="slug", storage_type="TEXT"),
    "relation": FieldType(name="relation", storage_type="TEXT"),
    "integer": FieldType(name="integer", storage_type="INTEGER"),
    "boolean": FieldType(
        name="boolean",
        storage_type="INTEGER",
        encode=_encode_bool,
        decode=_decode_bool,
    ),
    "datetime": FieldType(
        name="datetime",
        storage_type="TEXT",
        encode=_encode_datetime,
        decode=_decode_datetime,
    ),
    # Stored objects such as {"key": ..., "src": ...}
    "blob": FieldType(
        name="blob",
        storage_type="TEXT",
        encode=_encode_json,
        decode=_decode_json,
    ),
}


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition, defaulting to string."""
    return FIELD_TYPES.get(type_name, FIELD_TYPES["string"])


def get_storage_type(type_name: str) -> str:
    """Get SQLite storage type for a field type."""
    return get_field_type(type_name).storage_type
