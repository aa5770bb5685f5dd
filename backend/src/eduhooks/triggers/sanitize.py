"""Sanitizer: allowlist filtering for write payloads.

The allowlist for an entity is its declared field list in metadata. Keys
outside it are dropped silently; the caller reports each drop as an event.
Credential-shaped keys never reach an Account, allowlist or not, because
credentials live only in the session provider's own store.
"""

from typing import Any

from eduhooks.metadata.loader import MetadataLoader

CREDENTIAL_FIELDS = frozenset(
    {"password", "passwordHash", "hashedPassword", "passwordConfirmation"}
)

# Entities whose payloads must never carry credentials
CREDENTIAL_GUARDED = frozenset({"Account"})


def credential_fields(entity_name: str, payload: dict[str, Any]) -> list[str]:
    """Credential-shaped keys present in the payload."""
    if entity_name not in CREDENTIAL_GUARDED:
        return []
    return [key for key in payload if key in CREDENTIAL_FIELDS]


class Sanitizer:
    """Filters payloads against per-entity field allowlists."""

    def __init__(self, metadata: MetadataLoader):
        self.metadata = metadata
        self._allowlists: dict[str, frozenset[str]] = {}

    def allowlist(self, entity_name: str) -> frozenset[str]:
        """Fields a set payload may carry (primary key excluded)."""
        if entity_name not in self._allowlists:
            entity = self.metadata.require_entity(entity_name)
            self._allowlists[entity_name] = frozenset(
                f.name for f in entity.fields if not f.primary_key
            )
        return self._allowlists[entity_name]

    def rejected_fields(self, entity_name: str, payload: dict[str, Any]) -> list[str]:
        """Keys that sanitize() would remove, in payload order."""
        allowed = self.allowlist(entity_name)
        credentials = set(credential_fields(entity_name, payload))
        return [
            key for key in payload if key not in allowed or key in credentials
        ]

    def sanitize(self, entity_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of the payload with rejected keys removed."""
        rejected = set(self.rejected_fields(entity_name, payload))
        return {k: v for k, v in payload.items() if k not in rejected}
