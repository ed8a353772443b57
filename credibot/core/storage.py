# -----------------------------------------------------------------------------
# STORAGE - Read-only access to the tabular backend
# Purpose: fetch the most recent rows of one collection for the smart chat
# Two backends: Supabase/PostgREST over HTTP, or a SQL database via SQLAlchemy.
# No writes are ever issued from here.
# -----------------------------------------------------------------------------

import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic_core import PydanticSerializationError, to_jsonable_python
from sqlalchemy import column, desc, asc, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from credibot.core.config import MAX_QUERY_ROWS
from credibot.core.schemas import Record

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"\w+")


class StorageError(Exception):
    """The storage read failed or returned data that is not a list of records."""


def clamp_limit(limit: int) -> int:
    """Keep the row cap between 1 and MAX_QUERY_ROWS."""
    return max(1, min(limit, MAX_QUERY_ROWS))


def check_identifier(name: str, kind: str) -> str:
    if not name or not IDENTIFIER.fullmatch(name):
        raise StorageError(f"invalid {kind} name: {name!r}")
    return name


def parse_records(data: Any) -> List[Record]:
    """
    Accept only a JSON array of objects.

    Example:
        parse_records([{"nome": "Ana"}])  -> [{"nome": "Ana"}]
        parse_records({"error": "x"})     -> StorageError
    """
    if not isinstance(data, list):
        raise StorageError(f"unexpected response format: {type(data).__name__}")
    for row in data:
        if not isinstance(row, dict):
            raise StorageError(f"unexpected row format: {type(row).__name__}")
    return data


class TableReader:
    """Bounded, ordered read of one collection."""

    async def read(
        self, table_name: str, limit: int, order_by: str, descending: bool = True
    ) -> List[Record]:
        raise NotImplementedError


class RestTableReader(TableReader):
    """
    Supabase (PostgREST) reader.

    GET {base_url}/rest/v1/{table}?select=*&limit=N&order=field.desc
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def read(
        self, table_name: str, limit: int, order_by: str, descending: bool = True
    ) -> List[Record]:
        if not self.base_url or not self.api_key:
            raise StorageError("supabase credentials not configured")

        table_name = check_identifier(table_name, "table")
        order_by = check_identifier(order_by, "order field")

        url = f"{self.base_url}/rest/v1/{table_name}"
        params = {
            "select": "*",
            "limit": str(clamp_limit(limit)),
            "order": f"{order_by}.{'desc' if descending else 'asc'}",
        }

        logger.info(f"Reading {params['limit']} rows from {table_name} (REST)")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url, headers=self._headers(), params=params)
        except httpx.HTTPError as e:
            raise StorageError(f"supabase request failed: {e}") from e

        if response.status_code >= 400:
            raise StorageError(f"supabase error: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise StorageError(f"failed to parse response: {e}") from e

        records = parse_records(data)
        logger.info(f"Fetched {len(records)} rows from {table_name}")
        return records


class SqlTableReader(TableReader):
    """Reads straight from a SQL database through an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def read(
        self, table_name: str, limit: int, order_by: str, descending: bool = True
    ) -> List[Record]:
        table_name = check_identifier(table_name, "table")
        order_by = check_identifier(order_by, "order field")

        ordering = desc(column(order_by)) if descending else asc(column(order_by))
        stmt = (
            select(literal_column("*"))
            .select_from(table(table_name))
            .order_by(ordering)
            .limit(clamp_limit(limit))
        )

        logger.info(f"Reading {clamp_limit(limit)} rows from {table_name} (SQL)")

        # Driver connect errors (e.g. asyncpg) surface as OSError, not SQLAlchemyError
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.mappings().all()
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"database read failed: {e}") from e

        # Dates, decimals etc. become JSON-style values
        try:
            return [to_jsonable_python(dict(row)) for row in rows]
        except PydanticSerializationError as e:
            raise StorageError(f"failed to parse rows from {table_name}: {e}") from e
