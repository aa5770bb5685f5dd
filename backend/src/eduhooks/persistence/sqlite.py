"""SQLite store adapter."""

import sqlite3
from pathlib import Path
from typing import Any

from eduhooks.core.types import get_storage_type
from eduhooks.exceptions import StoreError, UniqueConstraintError
from eduhooks.metadata.loader import EntityModel
from eduhooks.persistence.codec import (
    check_filter,
    check_savepoint,
    decode_row,
    encode_record,
    new_id,
    table_name,
    unique_field_from_message,
)


class SQLiteAdapter:
    """Simple SQLite store adapter."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def initialize_entity(self, entity: EntityModel) -> None:
        """Create table for entity if it doesn't exist."""
        conn = self._require_conn()

        columns = []
        for field in entity.fields:
            col_def = f"{field.name} {get_storage_type(field.type)}"
            if field.primary_key:
                col_def += " PRIMARY KEY"
            else:
                if field.required:
                    col_def += " NOT NULL"
                if field.unique:
                    col_def += " UNIQUE"
            columns.append(col_def)

        sql = f"CREATE TABLE IF NOT EXISTS {table_name(entity.name)} ({', '.join(columns)})"
        conn.execute(sql)
        conn.commit()

    # ------------------------------------------------------------------
    # Autocommit CRUD
    # ------------------------------------------------------------------

    def create(self, entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and commit.

        Returns:
            The created record with its server-assigned ID
        """
        try:
            record = self.create_no_commit(entity, data)
        except StoreError:
            self.rollback()
            raise
        self.commit()
        return record

    def get(self, entity: EntityModel, id: str) -> dict[str, Any] | None:
        """Fetch a single record by ID."""
        conn = self._require_conn()

        sql = f"SELECT * FROM {table_name(entity.name)} WHERE {entity.primary_key} = ?"
        row = conn.execute(sql, [id]).fetchone()

        if row:
            return decode_row(entity, dict(row))
        return None

    def update(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update an existing record and commit."""
        try:
            record = self.update_no_commit(entity, id, data)
        except StoreError:
            self.rollback()
            raise
        self.commit()
        return record

    def delete(self, entity: EntityModel, id: str) -> bool:
        """Delete a record and commit. Deleting a missing record returns False."""
        deleted = self.delete_no_commit(entity, id)
        self.commit()
        return deleted

    def query(
        self,
        entity: EntityModel,
        filter: dict | None = None,
        sort: list[dict] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Query records with filtering, sorting, and pagination."""
        conn = self._require_conn()
        table = table_name(entity.name)

        # WHERE clause
        where_clause = ""
        where_values: list[Any] = []
        conditions = []
        for cond in check_filter(entity, filter):
            sql_cond, vals = self._build_condition(cond)
            conditions.append(sql_cond)
            where_values.extend(vals)
        if conditions:
            op = "OR" if (filter or {}).get("operator") == "or" else "AND"
            where_clause = f" WHERE {f' {op} '.join(conditions)}"

        # ORDER BY clause; rowid keeps insertion order by default
        order_parts = []
        names = set(entity.field_names)
        for s in sort or []:
            if s.get("field") not in names:
                raise StoreError(f"Unknown sort field '{s.get('field')}'", code="UNKNOWN_FIELD")
            direction = "DESC" if s.get("direction") == "desc" else "ASC"
            order_parts.append(f"{s['field']} {direction}")
        order_parts.append("rowid ASC")
        order_clause = f" ORDER BY {', '.join(order_parts)}"

        limit_clause = ""
        if limit:
            limit_clause = f" LIMIT {int(limit)} OFFSET {int(offset)}"

        sql = f"SELECT * FROM {table}{where_clause}{order_clause}{limit_clause}"
        rows = [decode_row(entity, dict(row)) for row in conn.execute(sql, where_values)]

        count_sql = f"SELECT COUNT(*) FROM {table}{where_clause}"
        total = conn.execute(count_sql, where_values).fetchone()[0]

        return {
            "data": rows,
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": (offset + len(rows)) < total if limit else False,
            },
        }

    def _build_condition(self, cond: dict) -> tuple[str, list[Any]]:
        """Build SQL condition from a checked filter condition."""
        field = cond["field"]
        op = cond["operator"]
        value = cond.get("value")

        if op == "eq":
            if value is None:
                return f"{field} IS NULL", []
            return f"{field} = ?", [value]
        elif op == "neq":
            return f"{field} != ?", [value]
        elif op == "gt":
            return f"{field} > ?", [value]
        elif op == "gte":
            return f"{field} >= ?", [value]
        elif op == "lt":
            return f"{field} < ?", [value]
        elif op == "lte":
            return f"{field} <= ?", [value]
        elif op in ("in", "notIn"):
            values = list(value or [])
            if not values:
                return ("0 = 1" if op == "in" else "1 = 1"), []
            placeholders = ", ".join(["?" for _ in values])
            keyword = "IN" if op == "in" else "NOT IN"
            return f"{field} {keyword} ({placeholders})", values
        elif op == "isNull":
            return f"{field} IS NULL", []
        return f"{field} IS NOT NULL", []

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """Open a transaction unless one is already open."""
        conn = self._require_conn()
        if not conn.in_transaction:
            conn.execute("BEGIN")

    def create_no_commit(self, entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record inside the open transaction."""
        conn = self._require_conn()

        record = encode_record(entity, data)
        pk = entity.primary_key
        if record.get(pk) is None:
            record[pk] = new_id(entity)

        field_names = list(record.keys())
        placeholders = ", ".join(["?" for _ in field_names])
        sql = (
            f"INSERT INTO {table_name(entity.name)} "
            f"({', '.join(field_names)}) VALUES ({placeholders})"
        )

        try:
            conn.execute(sql, [record[f] for f in field_names])
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(entity, e) from e

        return self.get(entity, record[pk])

    def update_no_commit(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update a record inside the open transaction."""
        conn = self._require_conn()

        encoded = encode_record(entity, data)
        updatable = [name for name in encoded if name != entity.primary_key]
        if not updatable:
            return self.get(entity, id)

        set_clause = ", ".join([f"{name} = ?" for name in updatable])
        values = [encoded[name] for name in updatable]
        values.append(id)
        sql = f"UPDATE {table_name(entity.name)} SET {set_clause} WHERE {entity.primary_key} = ?"

        try:
            conn.execute(sql, values)
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(entity, e) from e

        return self.get(entity, id)

    def delete_no_commit(self, entity: EntityModel, id: str) -> bool:
        """Delete a record inside the open transaction."""
        conn = self._require_conn()
        sql = f"DELETE FROM {table_name(entity.name)} WHERE {entity.primary_key} = ?"
        cursor = conn.execute(sql, [id])
        return cursor.rowcount > 0

    def commit(self) -> None:
        self._require_conn().commit()

    def rollback(self) -> None:
        self._require_conn().rollback()

    def savepoint(self, name: str) -> None:
        self._require_conn().execute(f"SAVEPOINT {check_savepoint(name)}")

    def rollback_to_savepoint(self, name: str) -> None:
        self._require_conn().execute(f"ROLLBACK TO SAVEPOINT {check_savepoint(name)}")

    def release_savepoint(self, name: str) -> None:
        self._require_conn().execute(f"RELEASE SAVEPOINT {check_savepoint(name)}")

    def _translate_integrity_error(
        self, entity: EntityModel, error: sqlite3.IntegrityError
    ) -> StoreError:
        message = str(error)
        if message.startswith("UNIQUE constraint failed"):
            # "UNIQUE constraint failed: student_profile.userId"
            columns = message.split(":", 1)[-1].strip()
            first = columns.split(",")[0].strip()
            field = first.split(".")[-1] if first else None
            return UniqueConstraintError(
                entity.name, field or unique_field_from_message(entity, message)
            )
        if message.startswith("NOT NULL constraint failed"):
            return StoreError(message, code="NOT_NULL_VIOLATION", details={"entity": entity.name})
        return StoreError(message, code="INTEGRITY_ERROR", details={"entity": entity.name})
