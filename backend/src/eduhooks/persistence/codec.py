"""Row encoding shared by the store adapters."""

import re
import uuid
from typing import Any

from eduhooks.core.types import get_field_type
from eduhooks.exceptions import StoreError
from eduhooks.metadata.loader import EntityModel

FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "in", "notIn", "isNull", "isNotNull")

_SAVEPOINT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def new_id(entity: EntityModel) -> str:
    """Server-assigned identifier, e.g. ``acc_3f2b...``."""
    return f"{entity.abbreviation.lower()}_{uuid.uuid4().hex}"


def table_name(entity_name: str) -> str:
    """Convert entity name to snake_case table name."""
    result = []
    for i, char in enumerate(entity_name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def encode_record(entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
    """Keep declared fields only and convert values to storage form."""
    encoded: dict[str, Any] = {}
    for field in entity.fields:
        if field.name in data:
            encoded[field.name] = get_field_type(field.type).encode(data[field.name])
    return encoded


def decode_row(entity: EntityModel, row: dict[str, Any]) -> dict[str, Any]:
    decoded = dict(row)
    for field in entity.fields:
        if field.name in decoded:
            decoded[field.name] = get_field_type(field.type).decode(decoded[field.name])
    return decoded


def check_filter(entity: EntityModel, filter: dict | None) -> list[dict]:
    """Validate filter conditions against the entity's fields.

    Filter format: {"operator": "and", "conditions": [{"field", "operator", "value"}]}
    """
    if not filter or "conditions" not in filter:
        return []
    names = set(entity.field_names)
    conditions = []
    for cond in filter["conditions"]:
        if cond.get("field") not in names:
            raise StoreError(
                f"Unknown field '{cond.get('field')}' on {entity.name}",
                code="UNKNOWN_FIELD",
            )
        if cond.get("operator") not in FILTER_OPERATORS:
            raise StoreError(
                f"Unsupported filter operator '{cond.get('operator')}'",
                code="UNSUPPORTED_OPERATOR",
            )
        field = entity.get_field(cond["field"])
        value = cond.get("value")
        codec = get_field_type(field.type) if field else None
        if codec is not None:
            if isinstance(value, (list, tuple)):
                value = [codec.encode(v) for v in value]
            else:
                value = codec.encode(value)
        conditions.append({**cond, "value": value})
    return conditions


def check_savepoint(name: str) -> str:
    if not _SAVEPOINT_NAME.match(name):
        raise ValueError(f"Invalid savepoint name: {name!r}")
    return name


def unique_field_from_message(entity: EntityModel, message: str) -> str | None:
    """Best-effort lookup of the unique field named in a driver error."""
    for name in entity.unique_fields:
        if name in message:
            return name
    return None
