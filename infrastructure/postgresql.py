# ============================================================================
# POSTGRESQL SCHEMA DATABASE
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Infrastructure - PostgreSQL adapter for the schema manager
# PURPOSE: Async psycopg3 implementation of the SchemaDatabase protocol
# CREATED: 18 OCT 2026
# ============================================================================
"""
PostgreSQL Schema Database

Async adapter that lets RuntimeSchemaManager create and evolve tables in
PostgreSQL. Uses psycopg3 with psycopg_pool.AsyncConnectionPool; every
connection runs in autocommit mode so each DDL statement is its own unit
of work, and its search_path is pinned to the configured schema.

Connection string priority:
1. Explicit connection_string argument
2. DATABASE_URL environment variable
3. Individual POSTGRES_* components

Introspection uses information_schema.columns and pg_indexes. Additive
evolution uses ALTER TABLE ... ADD COLUMN IF NOT EXISTS.

Schemas bound for this adapter must be generated with PostgreSQL type
spellings; postgres_schema_defaults() turns the generic DATETIME / JSON
defaults into TIMESTAMPTZ / JSONB.

Usage:
    async with AsyncPostgreSQLSchemaDatabase() as db:
        result = await manager.initialize_schemas(db, schemas)
"""

import os
import logging
from dataclasses import replace
from typing import Any, List, Optional

from psycopg import AsyncConnection, sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from core.config import DatabaseDefaults, SchemaDefaults, get_defaults
from core.models.schema import ColumnDefinition, IndexDefinition
from core.schema.ddl_utils import IndexBuilder, TableBuilder
from infrastructure.database import TableSchema

logger = logging.getLogger(__name__)


def get_connection_string(defaults: Optional[DatabaseDefaults] = None) -> str:
    """
    Get database connection string from environment.

    Returns:
        PostgreSQL connection string
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    defaults = defaults or get_defaults().database
    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={defaults.sslmode}"


def mask_connection_string(conninfo: str) -> str:
    """Strip credentials before logging."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


# Generic spellings SchemaDefaults ships with -> PostgreSQL types
POSTGRES_TYPE_SPELLINGS = {
    "datetime_type": ("DATETIME", "TIMESTAMPTZ"),
    "json_type": ("JSON", "JSONB"),
}


def postgres_schema_defaults(defaults: Optional[SchemaDefaults] = None) -> SchemaDefaults:
    """
    Schema defaults whose type spellings PostgreSQL accepts.

    PostgreSQL has no DATETIME type. Generic spellings are swapped for
    their PostgreSQL equivalents; anything an operator set explicitly
    (SCHEMA_DATETIME_TYPE, SCHEMA_JSON_TYPE) is kept as given.
    """
    defaults = defaults or get_defaults().schema
    changes = {
        name: postgres
        for name, (generic, postgres) in POSTGRES_TYPE_SPELLINGS.items()
        if getattr(defaults, name).upper() == generic
    }
    return replace(defaults, **changes)


class AsyncPostgreSQLSchemaDatabase:
    """
    SchemaDatabase implementation backed by an async connection pool.

    Owns its pool unless one is passed in. Trigger DDL is not supported:
    generated trigger bodies use the inline BEGIN ... END form, which
    PostgreSQL rejects.
    """

    supports_triggers = False

    def __init__(
        self,
        connection_string: Optional[str] = None,
        schema_name: Optional[str] = None,
        pool: Optional[AsyncConnectionPool] = None,
        defaults: Optional[DatabaseDefaults] = None,
    ):
        """
        Initialize the adapter.

        Args:
            connection_string: Optional explicit connection string
            schema_name: Target schema (default POSTGRES_SCHEMA / public)
            pool: Optional externally managed pool
            defaults: Pool sizing and schema defaults
        """
        self.defaults = defaults or get_defaults().database
        self.schema_name = schema_name or self.defaults.schema_name
        self._conn_string = connection_string
        self._pool = pool
        self._owns_pool = pool is None

    @property
    def conn_string(self) -> str:
        if self._conn_string is None:
            self._conn_string = get_connection_string(self.defaults)
        return self._conn_string

    # =========================================================================
    # POOL LIFECYCLE
    # =========================================================================

    async def _configure(self, conn: AsyncConnection) -> None:
        await conn.set_autocommit(True)
        await conn.execute(
            sql.SQL("SET search_path TO {}").format(sql.Identifier(self.schema_name))
        )

    async def open(self) -> AsyncConnectionPool:
        """Open the connection pool (idempotent)."""
        if self._pool is None:
            logger.info(
                f"Initializing connection pool: {mask_connection_string(self.conn_string)} "
                f"(schema={self.schema_name})"
            )
            self._pool = AsyncConnectionPool(
                conninfo=self.conn_string,
                min_size=self.defaults.pool_min_size,
                max_size=self.defaults.pool_max_size,
                configure=self._configure,
                kwargs={"row_factory": dict_row},
                open=False,
            )
            await self._pool.open()
            logger.info(
                f"Connection pool opened (min={self.defaults.pool_min_size}, "
                f"max={self.defaults.pool_max_size})"
            )
        return self._pool

    async def close(self) -> None:
        if self._pool is not None and self._owns_pool:
            await self._pool.close()
            self._pool = None
            logger.info("Connection pool closed")

    async def __aenter__(self) -> "AsyncPostgreSQLSchemaDatabase":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # SCHEMA DATABASE PROTOCOL
    # =========================================================================

    async def query(self, statement: Any, params: Optional[tuple] = None) -> List[dict]:
        """
        Execute one statement.

        Returns:
            Result rows (empty for DDL)
        """
        pool = await self.open()
        async with pool.connection() as conn:
            cur = await conn.execute(statement, params)
            if cur.description is None:
                return []
            return await cur.fetchall()

    async def table_exists(self, table: str) -> bool:
        rows = await self.query(
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = %s AND table_name = %s",
            (self.schema_name, table),
        )
        return bool(rows)

    async def get_table_schema(self, table: str) -> Optional[TableSchema]:
        """
        Introspect columns and index names of an existing table.

        Returns:
            TableSchema, or None if the table has no columns (missing)
        """
        column_rows = await self.query(
            "SELECT column_name, data_type, is_nullable, column_default "
            "FROM information_schema.columns "
            "WHERE table_schema = %s AND table_name = %s "
            "ORDER BY ordinal_position",
            (self.schema_name, table),
        )
        if not column_rows:
            return None

        index_rows = await self.query(
            "SELECT indexname FROM pg_indexes WHERE schemaname = %s AND tablename = %s",
            (self.schema_name, table),
        )

        return TableSchema(
            columns={
                row["column_name"]: {
                    "type": row["data_type"],
                    "nullable": row["is_nullable"] == "YES",
                    "default": row["column_default"],
                }
                for row in column_rows
            },
            indexes=[row["indexname"] for row in index_rows],
        )

    async def add_column(self, table: str, name: str, column: ColumnDefinition) -> None:
        await self.query(TableBuilder.add_column(table, name, column))
        logger.debug(f"Added column {table}.{name}")

    async def add_index(self, table: str, index: IndexDefinition) -> None:
        await self.query(IndexBuilder.create(table, index))
        logger.debug(f"Added index {index.name} on {table}")


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "AsyncPostgreSQLSchemaDatabase",
    "get_connection_string",
    "mask_connection_string",
    "postgres_schema_defaults",
]
