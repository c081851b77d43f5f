"""Catalog queries: table listing and column descriptions."""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import oracledb

from oraquery.connection import OracleSession
from oraquery.errors import InputValidationError, MetadataError
from oraquery.sanitizer import sanitize_rows

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("SYS", "SYSTEM", "SYS$UMF", "OUTLN", "APPQOSSYS", "DBSNMP", "WMSYS")

LIST_TABLES_SQL = f"""
    SELECT owner || '.' || table_name AS TABLE_NAME
    FROM all_tables
    WHERE owner NOT IN ({", ".join(f"'{s}'" for s in SYSTEM_SCHEMAS)})
      AND table_name NOT LIKE 'BIN$%'
    ORDER BY owner, table_name
"""

CURRENT_USER_SQL = "SELECT USER FROM DUAL"

DESCRIBE_SQL = """
    SELECT column_name, data_type, data_length, data_precision, data_scale, nullable
    FROM all_tab_columns
    WHERE owner = :p_owner AND table_name = :p_table
    ORDER BY column_id
"""

IDENTIFIER = re.compile(r"^[A-Z0-9_$#]+$")
INVALID_NAME_MESSAGE = "Owner or table name contains invalid characters. Use SCHEMA.TABLE without quotes."


@dataclass
class TableDescriptor:
    owner: str
    table_name: str
    columns: List[Dict[str, Any]] = field(default_factory=list)


def normalize_identifier(name: str) -> str:
    """Trim, drop surrounding double quotes and upper-case."""
    name = (name or "").strip()
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        name = name[1:-1]
    return name.upper()


def is_valid_identifier(name: str) -> bool:
    return bool(IDENTIFIER.match(name))


def split_table_identifier(identifier: str) -> Tuple[Optional[str], str]:
    """Split ``OWNER.TABLE`` into parts; owner is None for a bare table name."""
    parts = (identifier or "").split(".")
    if len(parts) == 1:
        return None, normalize_identifier(parts[0])
    if len(parts) == 2:
        return normalize_identifier(parts[0]), normalize_identifier(parts[1])
    raise InputValidationError(INVALID_NAME_MESSAGE)


class MetadataReader:
    def __init__(self, session: OracleSession):
        self.session = session

    async def _query(self, connection, sql: str, params=None) -> List[Dict[str, Any]]:
        cursor = connection.cursor()
        try:
            await cursor.execute(sql, params or {})
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row)) for row in await cursor.fetchall()]
        finally:
            cursor.close()

    async def list_tables(self) -> List[str]:
        """Return ``OWNER.TABLE`` names outside the system schemas."""
        connection = self.session.require_connection()
        try:
            rows = await self._query(connection, LIST_TABLES_SQL)
        except oracledb.Error as e:
            logger.error("Error listing tables: %s", e)
            raise MetadataError(str(e)) from e
        return [row["TABLE_NAME"] for row in rows]

    async def current_user(self, connection) -> str:
        rows = await self._query(connection, CURRENT_USER_SQL)
        return rows[0]["USER"] if rows else ""

    async def describe(self, identifier: str) -> TableDescriptor:
        """
        Describe the columns of a table.

        Args:
            identifier: ``OWNER.TABLE`` or a bare table name, in which case the
                session user is the owner

        Raises:
            InputValidationError: missing name or invalid identifier characters
            MetadataError: the catalog query failed
        """
        connection = self.session.require_connection()
        if not identifier or not identifier.strip():
            raise InputValidationError("Table name is required")

        owner, table_name = split_table_identifier(identifier)
        if not is_valid_identifier(table_name) or (owner is not None and not is_valid_identifier(owner)):
            raise InputValidationError(INVALID_NAME_MESSAGE)

        try:
            if owner is None:
                owner = normalize_identifier(await self.current_user(connection))
                if not is_valid_identifier(owner):
                    raise InputValidationError(INVALID_NAME_MESSAGE)
            rows = await self._query(
                connection,
                DESCRIBE_SQL,
                {"p_owner": owner, "p_table": table_name},
            )
        except oracledb.Error as e:
            logger.error("Error describing %s.%s: %s", owner, table_name, e)
            raise MetadataError(str(e)) from e

        columns = [{key.lower(): value for key, value in row.items()} for row in sanitize_rows(rows)]
        return TableDescriptor(owner=owner, table_name=table_name, columns=columns)
