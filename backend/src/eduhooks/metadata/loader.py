"""Entity metadata: YAML definitions resolved into EntityModel objects.

Layout::

    <metadata_path>/entities/*.yaml

One file per entity. The declared field list is both the table schema and
the entity's write allowlist, so anything the sanitizer lets through is
something the store can hold.
"""

from dataclasses import dataclass
from pathlib import Path
import yaml

from eduhooks.exceptions import MetadataError, UnknownEntityError

# Entity definitions shipped with the package
BUILTIN_METADATA_PATH = Path(__file__).parent


@dataclass
class RelationConfig:
    entity: str  # Target entity name


@dataclass
class FieldDefinition:
    name: str
    type: str
    display_name: str
    primary_key: bool = False
    required: bool = False
    unique: bool = False
    relation: RelationConfig | None = None


@dataclass
class EntityModel:
    name: str
    display_name: str
    primary_key: str
    fields: list[FieldDefinition]
    abbreviation: str = ""  # 2-5 alphanumeric chars; prefixes generated ids
    description: str = ""

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.name == name), None)

    @property
    def unique_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.unique]

    @property
    def relation_fields(self) -> list[FieldDefinition]:
        return [f for f in self.fields if f.type == "relation" and f.relation]


def _display_name(name: str) -> str:
    """camelCase -> Title Case ("emailVerified" -> "Email Verified")."""
    words = []
    for char in name:
        if char.isupper() and words:
            words.append(" ")
        words.append(char)
    return "".join(words).title()


def _field_from_yaml(data: dict) -> FieldDefinition:
    relation = data.get("relation")
    return FieldDefinition(
        name=data["name"],
        type=data.get("type", "string"),
        display_name=data.get("displayName") or _display_name(data["name"]),
        primary_key=bool(data.get("primaryKey", False)),
        required=bool(data.get("required", False)),
        unique=bool(data.get("unique", False)),
        relation=RelationConfig(entity=relation.get("entity", "")) if relation else None,
    )


def _entity_from_yaml(data: dict) -> EntityModel:
    name = data["entity"]
    fields = [_field_from_yaml(f) for f in data.get("fields") or []]
    if not fields:
        raise MetadataError(f"Entity '{name}' declares no fields")

    keys = [f.name for f in fields if f.primary_key]
    if len(keys) > 1:
        raise MetadataError(f"Entity '{name}' declares more than one primary key: {keys}")

    return EntityModel(
        name=name,
        display_name=data.get("displayName", name),
        primary_key=keys[0] if keys else "id",
        fields=fields,
        abbreviation=str(data.get("abbreviation") or name[:3]).upper(),
        description=data.get("description", ""),
    )


class MetadataLoader:
    """Loads and cross-checks the entity definitions under ``metadata_path``."""

    def __init__(self, metadata_path: Path | None = None):
        self.metadata_path = metadata_path or BUILTIN_METADATA_PATH
        self.entities: dict[str, EntityModel] = {}

    def load_all(self) -> None:
        """Load every entity file, then check abbreviations and relations.

        Raises:
            MetadataError: On a malformed entity, a bad or duplicate
                abbreviation, or a relation to an undeclared entity
        """
        entities_path = self.metadata_path / "entities"
        if entities_path.exists():
            for yaml_file in sorted(entities_path.glob("*.yaml")):
                data = yaml.safe_load(yaml_file.read_text())
                if data and "entity" in data:
                    entity = _entity_from_yaml(data)
                    self.entities[entity.name] = entity

        self._check_abbreviations()
        self._check_relations()

    def _check_abbreviations(self) -> None:
        owners: dict[str, str] = {}
        for entity in self.entities.values():
            abbrev = entity.abbreviation
            if not 2 <= len(abbrev) <= 5:
                raise MetadataError(
                    f"Entity '{entity.name}' abbreviation '{abbrev}' must be 2-5 characters"
                )
            if not abbrev.isalnum():
                raise MetadataError(
                    f"Entity '{entity.name}' abbreviation '{abbrev}' must be alphanumeric"
                )
            if abbrev in owners:
                raise MetadataError(
                    f"Duplicate abbreviation '{abbrev}' used by both "
                    f"'{owners[abbrev]}' and '{entity.name}'"
                )
            owners[abbrev] = entity.name

    def _check_relations(self) -> None:
        # The session guard resolves owners through these targets
        for entity in self.entities.values():
            for field in entity.relation_fields:
                if field.relation.entity not in self.entities:
                    raise MetadataError(
                        f"{entity.name}.{field.name} relates to unknown entity "
                        f"'{field.relation.entity}'"
                    )

    def get_entity(self, name: str) -> EntityModel | None:
        return self.entities.get(name)

    def require_entity(self, name: str) -> EntityModel:
        """Get a resolved entity by name, raising if it is unknown."""
        entity = self.entities.get(name)
        if entity is None:
            raise UnknownEntityError(name)
        return entity

    def list_entities(self) -> list[str]:
        return list(self.entities)


def load_builtin_metadata() -> MetadataLoader:
    """Load the entity definitions shipped with eduhooks."""
    loader = MetadataLoader(BUILTIN_METADATA_PATH)
    loader.load_all()
    return loader
