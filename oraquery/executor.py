import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import oracledb

from oraquery.connection import OracleSession
from oraquery.errors import InputValidationError, QueryExecutionError
from oraquery.sanitizer import sanitize_rows

logger = logging.getLogger(__name__)

# Queries that already limit their own rows are never wrapped
SELF_LIMITING = re.compile(r"\b(rownum|row_number|offset|fetch)\b", re.IGNORECASE)


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]]
    total_count: Optional[int]
    page: int
    page_size: int


def normalize_sql(sql: Optional[str]) -> str:
    """Strip whitespace and a single trailing ';'."""
    sql = (sql or "").strip()
    if sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


def count_sql(sql: str) -> str:
    return f"SELECT COUNT(*) AS CNT FROM ({sql})"


def paginated_sql(sql: str) -> str:
    return f"SELECT * FROM ({sql}) t OFFSET :row_offset ROWS FETCH NEXT :row_limit ROWS ONLY"


class QueryExecutor:
    """Executes ad-hoc queries against the session's connection."""

    def __init__(self, session: OracleSession):
        self.session = session

    async def _fetch(self, connection, sql: str, params=None) -> List[Dict[str, Any]]:
        cursor = connection.cursor()
        try:
            await cursor.execute(sql, params or {})
            if not cursor.description:
                return []
            columns = [desc[0] for desc in cursor.description]
            rows = await cursor.fetchall()
            return [dict(zip(columns, row)) for row in rows]
        finally:
            cursor.close()

    async def _count(self, connection, sql: str) -> Optional[int]:
        try:
            rows = await self._fetch(connection, count_sql(sql))
        except Exception as e:
            logger.warning("Could not get total count: %s", e)
            return None
        if not rows:
            return 0
        return int(rows[0].get("CNT") or 0)

    async def execute(self, sql: str, page: int = 1, page_size: int = 0) -> QueryResult:
        """Execute query and return sanitized rows, paginated when page_size > 0."""
        connection = self.session.require_connection()

        sql = normalize_sql(sql)
        if not sql:
            raise InputValidationError("SQL query is required")

        page = max(page or 1, 1)
        page_size = max(page_size or 0, 0)
        logger.info("Executing query: %s (page %d, page size %d)", sql, page, page_size)

        total_count = None
        try:
            if page_size <= 0 or SELF_LIMITING.search(sql):
                rows = await self._fetch(connection, sql)
            else:
                total_count = await self._count(connection, sql)
                offset = (page - 1) * page_size
                rows = await self._fetch(
                    connection,
                    paginated_sql(sql),
                    {"row_offset": offset, "row_limit": page_size},
                )
        except oracledb.Error as e:
            logger.error("Query execution failed: %s", e)
            raise QueryExecutionError(f"Execution error: {e}") from e

        logger.info("Query executed. Rows returned: %d", len(rows))
        return QueryResult(
            rows=sanitize_rows(rows),
            total_count=total_count,
            page=page,
            page_size=page_size,
        )
