"""Simulated SQL database for the ``query_database`` tool.

Every operation opens its own SQLite connection and seeds a small demo
catalog. With the default ``:memory:`` path nothing outlives a single call.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional, Sequence

import aiosqlite

from ..config import get_settings

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SEED_SQL = """
CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY,
    sku TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    price REAL,
    currency TEXT DEFAULT 'USD',
    in_stock INTEGER DEFAULT 1
);
INSERT OR IGNORE INTO products (id, sku, name, price, currency, in_stock) VALUES
    (1, '201807231-01', 'Surface Pro 4', 899.00, 'USD', 1),
    (2, '1727541', 'HP Compaq LA2006x', 219.00, 'USD', 1),
    (3, '4818001', 'Sony Alpha 7 II', 1399.00, 'USD', 0);
"""


class DatabaseError(Exception):
    """Raised for invalid database operations."""

    pass


def _check_identifier(name: str) -> str:
    if not IDENTIFIER_PATTERN.match(name):
        raise DatabaseError(f"Invalid SQL identifier: {name!r}")
    return name


class DatabaseClient:
    """Async SQLite client seeded with demo data."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database client.

        Args:
            db_path: SQLite path. Uses settings default (``:memory:``) if not provided.
        """
        settings = get_settings()
        self.db_path = db_path or settings.DATABASE_PATH

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a seeded database connection.

        Yields:
            aiosqlite.Connection: Database connection.
        """
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        try:
            await conn.executescript(SEED_SQL)
            yield conn
        finally:
            await conn.close()

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
        """Execute a statement.

        Args:
            sql: SQL statement with ``?`` placeholders.
            params: Positional parameters.

        Returns:
            Dictionary with the statement, parameters, result rows and counts.
        """
        params = list(params or [])
        logger.info(f"Executing query: {sql} {params}")

        try:
            async with self.connection() as conn:
                cursor = await conn.execute(sql, params)
                rows = [dict(row) for row in await cursor.fetchall()]
                await conn.commit()
                return {
                    "sql": sql,
                    "params": params,
                    "rows": rows,
                    "row_count": len(rows) if rows else max(cursor.rowcount, 0),
                    "last_row_id": cursor.lastrowid,
                }
        except aiosqlite.Error as e:
            raise DatabaseError(f"Query failed: {e}") from e

    async def insert(self, table: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        columns = [_check_identifier(column) for column in data]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {_check_identifier(table)} ({', '.join(columns)}) VALUES ({placeholders})"
        return await self.query(sql, list(data.values()))

    async def update(
        self,
        table: str,
        data: Mapping[str, Any],
        condition: str,
        condition_params: Optional[Sequence[Any]] = None,
    ) -> Dict[str, Any]:
        set_clause = ", ".join(f"{_check_identifier(column)} = ?" for column in data)
        sql = f"UPDATE {_check_identifier(table)} SET {set_clause} WHERE {condition}"
        return await self.query(sql, [*data.values(), *(condition_params or [])])

    async def delete(
        self,
        table: str,
        condition: str,
        params: Optional[Sequence[Any]] = None,
    ) -> Dict[str, Any]:
        sql = f"DELETE FROM {_check_identifier(table)} WHERE {condition}"
        return await self.query(sql, params)


def validate_data(data: Any, schema: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Check a record against ``required`` fields and JSON ``types``.

    Args:
        data: Record to validate.
        schema: ``{"required": [...], "types": {field: "string"|"number"|...}}``.

    Returns:
        Dictionary with ``valid`` and a list of ``errors``.
    """
    json_types = {
        "string": str,
        "number": (int, float),
        "integer": int,
        "boolean": bool,
        "object": dict,
        "array": list,
    }
    schema = schema or {}
    errors: List[str] = []

    if not isinstance(data, dict):
        return {"valid": False, "errors": ["Data must be an object"]}

    for field in schema.get("required", []):
        if data.get(field) is None:
            errors.append(f"Missing required field: {field}")

    for field, expected in schema.get("types", {}).items():
        if field not in data:
            continue
        python_type = json_types.get(expected)
        value = data[field]
        if python_type is None:
            errors.append(f"Unknown type for {field}: {expected}")
        elif isinstance(value, bool) and expected in ("number", "integer"):
            errors.append(f"Wrong type for {field}: expected {expected}, got boolean")
        elif not isinstance(value, python_type):
            errors.append(f"Wrong type for {field}: expected {expected}, got {type(value).__name__}")

    return {"valid": not errors, "errors": errors}
