"""
Base repository with shared SQLite execution helpers.

Repositories receive an open ``sqlite3.Connection`` (managed by the caller,
typically via ``get_connection()``), keep all SQL explicit, and speak pydantic
models rather than raw rows. Nested model parts are stored as JSON text.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """Shared SQL execution helpers for all repository classes.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Execute a single SQL statement with ``?`` or ``:name`` placeholders."""
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[Params]) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | count: %d", sql.strip(), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        """Execute a query and return the first row, or ``None``."""
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    @staticmethod
    def to_json(value: Any) -> str:
        """Serialize a JSON-compatible value with stable key order."""
        return json.dumps(value, sort_keys=True)

    @staticmethod
    def from_json(text: Optional[str], default: Any = None) -> Any:
        return json.loads(text) if text else default
