# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Infrastructure - Database-facing schema coordination
# PURPOSE: Runtime schema manager, locking, and the PostgreSQL adapter
# CREATED: 18 OCT 2026
# ============================================================================
"""
Infrastructure module for schema coordination.

Provides:
- RuntimeSchemaManager: create and evolve tables in dependency order
- InitializationLocks: one in-flight initializer per (schema, table)
- AsyncPostgreSQLSchemaDatabase: psycopg3 implementation of SchemaDatabase

Usage:
    from infrastructure import RuntimeSchemaManager, AsyncPostgreSQLSchemaDatabase

    manager = RuntimeSchemaManager()
    async with AsyncPostgreSQLSchemaDatabase() as db:
        result = await manager.initialize_schemas(db, schemas)
"""

from infrastructure.database import (
    SchemaDatabase,
    EvolvableSchemaDatabase,
    TableSchema,
    supports_evolution,
    supports_triggers,
)
from infrastructure.locking import InitializationLocks
from infrastructure.schema_manager import (
    RuntimeSchemaManager,
    InitializationResult,
)
from infrastructure.postgresql import (
    AsyncPostgreSQLSchemaDatabase,
    get_connection_string,
    postgres_schema_defaults,
)

__all__ = [
    # Protocol
    'SchemaDatabase',
    'EvolvableSchemaDatabase',
    'TableSchema',
    'supports_evolution',
    'supports_triggers',
    # Locking
    'InitializationLocks',
    # Schema manager
    'RuntimeSchemaManager',
    'InitializationResult',
    # PostgreSQL
    'AsyncPostgreSQLSchemaDatabase',
    'get_connection_string',
    'postgres_schema_defaults',
]
