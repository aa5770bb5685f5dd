"""PostgreSQL store adapter.

Uses psycopg v3 (psycopg[binary]>=3.1.0) for database access.
Mirrors SQLiteAdapter method-for-method with PostgreSQL-specific SQL:
  - %s placeholders instead of ?
  - dict_row cursor factory for dict-based row access
  - psycopg.errors.UniqueViolation mapped to UniqueConstraintError

Identifier quoting strategy
----------------------------
PostgreSQL folds unquoted identifiers to lowercase. Entity field names are
camelCase (``userId``, ``createdAt``), so every table and column name is
double-quoted to preserve the original casing and avoid conflicts with
reserved words such as ``session`` or ``user``.
"""

from __future__ import annotations

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

_PG_TYPES = {"TEXT": "TEXT", "INTEGER": "BIGINT", "REAL": "DOUBLE PRECISION"}


def _col(name: str) -> str:
    """Return a double-quoted PostgreSQL column identifier.

    Example: _col("userId") → '"userId"'
    """
    return f'"{name}"'


class PostgreSQLAdapter:
    """PostgreSQL store adapter using psycopg v3."""

    def __init__(self, url: str):
        # psycopg.connect() wants a plain libpq DSN or postgres:// URL,
        # so strip the +psycopg driver suffix when present.
        self.url = url.replace("postgresql+psycopg://", "postgresql://")
        self.conn: Any = None

    def connect(self) -> None:
        """Establish database connection."""
        import psycopg
        from psycopg.rows import dict_row

        self.conn = psycopg.connect(self.url, row_factory=dict_row)
        self.conn.autocommit = False

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> Any:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def _table(self, entity: EntityModel) -> str:
        return f'"{table_name(entity.name)}"'

    def initialize_entity(self, entity: EntityModel) -> None:
        """Create table for entity if it doesn't exist."""
        conn = self._require_conn()

        columns = []
        for field in entity.fields:
            pg_type = _PG_TYPES.get(get_storage_type(field.type), "TEXT")
            col_def = f"{_col(field.name)} {pg_type}"
            if field.primary_key:
                col_def += " PRIMARY KEY"
            else:
                if field.required:
                    col_def += " NOT NULL"
                if field.unique:
                    col_def += " UNIQUE"
            columns.append(col_def)

        conn.execute(f"CREATE TABLE IF NOT EXISTS {self._table(entity)} ({', '.join(columns)})")
        conn.commit()

    # ------------------------------------------------------------------
    # Autocommit CRUD
    # ------------------------------------------------------------------

    def create(self, entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
        try:
            record = self.create_no_commit(entity, data)
        except StoreError:
            self.rollback()
            raise
        self.commit()
        return record

    def get(self, entity: EntityModel, id: str) -> dict[str, Any] | None:
        conn = self._require_conn()
        sql = f"SELECT * FROM {self._table(entity)} WHERE {_col(entity.primary_key)} = %s"
        row = conn.execute(sql, [id]).fetchone()
        if row:
            return decode_row(entity, dict(row))
        return None

    def update(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        try:
            record = self.update_no_commit(entity, id, data)
        except StoreError:
            self.rollback()
            raise
        self.commit()
        return record

    def delete(self, entity: EntityModel, id: str) -> bool:
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
        table = self._table(entity)

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

        order_parts = []
        names = set(entity.field_names)
        for s in sort or []:
            if s.get("field") not in names:
                raise StoreError(f"Unknown sort field '{s.get('field')}'", code="UNKNOWN_FIELD")
            direction = "DESC" if s.get("direction") == "desc" else "ASC"
            order_parts.append(f"{_col(s['field'])} {direction}")
        if "createdAt" in names:
            order_parts.append(f"{_col('createdAt')} ASC")
        order_parts.append(f"{_col(entity.primary_key)} ASC")
        order_clause = f" ORDER BY {', '.join(order_parts)}"

        limit_clause = ""
        if limit:
            limit_clause = f" LIMIT {int(limit)} OFFSET {int(offset)}"

        sql = f"SELECT * FROM {table}{where_clause}{order_clause}{limit_clause}"
        rows = [decode_row(entity, dict(row)) for row in conn.execute(sql, where_values).fetchall()]

        count_row = conn.execute(
            f"SELECT COUNT(*) AS total FROM {table}{where_clause}", where_values
        ).fetchone()
        total = count_row["total"] if count_row else 0

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
        field = _col(cond["field"])
        op = cond["operator"]
        value = cond.get("value")

        if op == "eq":
            if value is None:
                return f"{field} IS NULL", []
            return f"{field} = %s", [value]
        elif op == "neq":
            return f"{field} != %s", [value]
        elif op == "gt":
            return f"{field} > %s", [value]
        elif op == "gte":
            return f"{field} >= %s", [value]
        elif op == "lt":
            return f"{field} < %s", [value]
        elif op == "lte":
            return f"{field} <= %s", [value]
        elif op in ("in", "notIn"):
            values = list(value or [])
            if not values:
                return ("FALSE" if op == "in" else "TRUE"), []
            placeholders = ", ".join(["%s" for _ in values])
            keyword = "IN" if op == "in" else "NOT IN"
            return f"{field} {keyword} ({placeholders})", values
        elif op == "isNull":
            return f"{field} IS NULL", []
        return f"{field} IS NOT NULL", []

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """psycopg opens a transaction on the first statement."""
        self._require_conn()

    def create_no_commit(self, entity: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
        conn = self._require_conn()

        record = encode_record(entity, data)
        pk = entity.primary_key
        if record.get(pk) is None:
            record[pk] = new_id(entity)

        field_names = list(record.keys())
        cols = ", ".join(_col(f) for f in field_names)
        placeholders = ", ".join(["%s" for _ in field_names])
        sql = f"INSERT INTO {self._table(entity)} ({cols}) VALUES ({placeholders})"

        self._execute_write(entity, sql, [record[f] for f in field_names])
        return self.get(entity, record[pk])

    def update_no_commit(
        self, entity: EntityModel, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        encoded = encode_record(entity, data)
        updatable = [name for name in encoded if name != entity.primary_key]
        if not updatable:
            return self.get(entity, id)

        set_clause = ", ".join(f"{_col(name)} = %s" for name in updatable)
        values = [encoded[name] for name in updatable]
        values.append(id)
        sql = (
            f"UPDATE {self._table(entity)} SET {set_clause} "
            f"WHERE {_col(entity.primary_key)} = %s"
        )

        self._execute_write(entity, sql, values)
        return self.get(entity, id)

    def delete_no_commit(self, entity: EntityModel, id: str) -> bool:
        conn = self._require_conn()
        sql = f"DELETE FROM {self._table(entity)} WHERE {_col(entity.primary_key)} = %s"
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

    def _execute_write(self, entity: EntityModel, sql: str, values: list[Any]) -> None:
        from psycopg import errors

        try:
            self._require_conn().execute(sql, values)
        except errors.UniqueViolation as e:
            constraint = getattr(e.diag, "constraint_name", None) or str(e)
            raise UniqueConstraintError(
                entity.name, unique_field_from_message(entity, constraint)
            ) from e
        except errors.IntegrityError as e:
            raise StoreError(
                str(e), code="INTEGRITY_ERROR", details={"entity": entity.name}
            ) from e
