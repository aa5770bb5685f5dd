"""Selector handling.

A selector is either a primary key string or a dict of field equality
conditions joined with AND. A list value means "any of".

    to_filter({"userId": "acc_1", "role": ["teacher", "school_admin"]})
    # -> {"operator": "and", "conditions": [
    #        {"field": "userId", "operator": "eq", "value": "acc_1"},
    #        {"field": "role", "operator": "in", "value": ["teacher", "school_admin"]}]}
"""

from typing import Any

from eduhooks.metadata.loader import EntityModel

Selector = str | dict[str, Any] | None


def to_filter(selector: dict[str, Any] | None) -> dict | None:
    """Convert an equality selector into the store's filter format."""
    if not selector:
        return None
    conditions = []
    for name, value in selector.items():
        if isinstance(value, (list, tuple, set)):
            conditions.append({"field": name, "operator": "in", "value": list(value)})
        else:
            conditions.append({"field": name, "operator": "eq", "value": value})
    return {"operator": "and", "conditions": conditions}


def select(store: Any, entity: EntityModel, selector: Selector) -> list[dict[str, Any]]:
    """Fetch the records a selector matches, straight from the store."""
    if isinstance(selector, str):
        record = store.get(entity, selector)
        return [record] if record is not None else []
    if selector is None or isinstance(selector, dict):
        return store.query(entity, filter=to_filter(selector))["data"]
    raise TypeError(f"Unsupported selector type: {type(selector).__name__}")
