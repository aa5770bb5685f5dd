"""EntityStore Protocol: the CRUD surface the pipeline wraps."""

from typing import Any, Protocol, runtime_checkable

from eduhooks.metadata.loader import EntityModel


@runtime_checkable
class EntityStore(Protocol):
    """Interface all store adapters must implement.

    The store owns durability and uniqueness. ``create``/``update``/``delete``
    commit immediately; the ``*_no_commit`` variants join the open unit of
    work, which the caller closes with ``commit`` or ``rollback``. Savepoints
    let a caller undo one statement without losing the rest of the unit.

    Unique-constraint violations raise ``UniqueConstraintError``; other
    integrity failures raise ``StoreError``.
    """

    # Raw connection handle. Type varies by adapter (sqlite3.Connection,
    # psycopg.Connection).
    conn: Any

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize_entity(self, entity: EntityModel) -> None: ...

    def create(self, entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]: ...

    def get(self, entity: EntityModel, id: str) -> dict[str, Any] | None: ...

    def update(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def delete(self, entity: EntityModel, id: str) -> bool: ...

    def query(
        self,
        entity: EntityModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]: ...

    def begin(self) -> None: ...

    def create_no_commit(
        self, entity: EntityModel, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    def update_no_commit(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def delete_no_commit(self, entity: EntityModel, id: str) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def savepoint(self, name: str) -> None: ...

    def rollback_to_savepoint(self, name: str) -> None: ...

    def release_savepoint(self, name: str) -> None: ...
