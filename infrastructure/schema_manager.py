# ============================================================================
# RUNTIME SCHEMA MANAGER
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Infrastructure - Runtime table initialization
# PURPOSE: Create, evolve, and version-track tables in dependency order
# CREATED: 18 OCT 2026
# EXPORTS: RuntimeSchemaManager, InitializationResult
# DEPENDENCIES: pydantic (models), asyncio
# ============================================================================
"""
RuntimeSchemaManager - brings a live database into line with a batch of
SchemaDefinitions.

Workflow per initialize_schemas() call:
1. Merge whole-entry overrides into the batch
2. Build the dependency graph (restricted to tables in the batch)
3. Topologically sort it (depth-first, post-order); a cycle aborts the call
4. For each schema, in order:
   a. skip if this exact version was already initialized (and not force)
   b. take the (schema name, table name) lock, or join the in-flight run
   c. create the table and its indexes, drop and recreate it (force),
      or add missing columns and indexes (additive evolution)
   d. record the version
   e. capture any failure as {schema, error} and continue
5. Return initialized / skipped / errors / elapsed milliseconds

One manager per target database. Tests construct their own instance;
reset() exists for callers that share one.

Usage:
    manager = RuntimeSchemaManager()
    result = await manager.initialize_schemas(db, schemas)
    if not result.success:
        for err in result.errors:
            logger.error(f"{err['schema']}: {err['error']}")
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from core.config import ManagerDefaults, get_defaults
from core.contracts import CircularDependencyError, SchemaInitializationError, SchemaState
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models.schema import SchemaDefinition
from core.schema.ddl_utils import IndexBuilder, TableBuilder, TriggerBuilder, render
from infrastructure.database import (
    SchemaDatabase,
    coerce_table_schema,
    supports_evolution,
    supports_triggers,
)
from infrastructure.locking import InitializationLocks, LockKey

logger = get_logger(__name__, ComponentType.MANAGER)

DEPENDENCY_RESOLUTION = "dependency-resolution"


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class InitializationResult:
    """Outcome of one initialize_schemas() call."""
    initialized: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    execution_time: float = 0.0  # milliseconds

    @property
    def success(self) -> bool:
        return not self.errors

    def add_error(self, schema: str, error: Any) -> None:
        self.errors.append({"schema": schema, "error": str(error)})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "initialized": list(self.initialized),
            "skipped": list(self.skipped),
            "errors": [dict(e) for e in self.errors],
            "executionTime": self.execution_time,
        }


# ============================================================================
# RUNTIME SCHEMA MANAGER
# ============================================================================

class RuntimeSchemaManager:
    """
    Coordinator for runtime schema initialization against one database.

    Holds the in-flight lock registry and the schema name -> initialized
    version map. All DDL is idempotent (IF NOT EXISTS) except the force
    path, which drops tables.
    """

    def __init__(
        self,
        locks: Optional[InitializationLocks] = None,
        defaults: Optional[ManagerDefaults] = None,
    ):
        """
        Initialize the manager.

        Args:
            locks: In-flight registry (fresh one if None)
            defaults: Manager behaviour flags (global defaults if None)
        """
        self.locks = locks or InitializationLocks()
        self.defaults = defaults or get_defaults().manager
        self._versions: Dict[str, str] = {}
        self._states: Dict[LockKey, SchemaState] = {}

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def initialize_schemas(
        self,
        db: SchemaDatabase,
        schemas: Mapping[str, SchemaDefinition],
        override: Optional[Mapping[str, SchemaDefinition]] = None,
        force: bool = False,
    ) -> InitializationResult:
        """
        Initialize a batch of schemas in dependency order.

        Args:
            db: Database collaborator (query, table_exists, optional evolution)
            schemas: Schema name -> SchemaDefinition
            override: Schema name -> SchemaDefinition replacing whole entries
            force: Drop and recreate existing tables (development/test only)

        Returns:
            InitializationResult; never raises for per-schema failures
        """
        started = time.monotonic()
        result = InitializationResult()
        final = {**schemas, **(override or {})}

        logger.info("=" * 70)
        logger.info("SCHEMA INITIALIZATION")
        logger.info(f"   Schemas: {len(final)}")
        logger.info(f"   Mode: {'FORCE' if force else 'STANDARD'}")
        logger.info("=" * 70)
        log_checkpoint("schema_batch_started", {"schemas": list(final), "force": force})

        try:
            order = self.resolve_initialization_order(final)
        except CircularDependencyError as e:
            logger.error(f"Dependency resolution failed: {e}")
            result.add_error(DEPENDENCY_RESOLUTION, e)
            result.execution_time = self._elapsed_ms(started)
            return result

        logger.debug(f"Initialization order: {order}")

        for schema_name in order:
            schema = final[schema_name]
            with log_context(
                schema_name=schema_name,
                table_name=schema.table_name,
                package_name=schema.package_name,
                version=schema.version,
            ):
                try:
                    initialized = await self._initialize_schema(db, schema_name, schema, force)
                except Exception as e:
                    logger.error(f"Failed to initialize {schema_name}: {e}")
                    result.add_error(schema_name, e)
                    continue

                if initialized:
                    result.initialized.append(schema_name)
                else:
                    result.skipped.append(schema_name)

        result.execution_time = self._elapsed_ms(started)

        logger.info("=" * 70)
        logger.info(f"SCHEMA INITIALIZATION {'COMPLETE' if result.success else 'FINISHED WITH ERRORS'}")
        logger.info(
            f"   Initialized: {len(result.initialized)}, "
            f"skipped: {len(result.skipped)}, errors: {len(result.errors)} "
            f"({result.execution_time:.1f} ms)"
        )
        logger.info("=" * 70)
        log_checkpoint("schema_batch_completed", result.to_dict())

        return result

    def resolve_initialization_order(
        self,
        schemas: Mapping[str, SchemaDefinition],
    ) -> List[str]:
        """
        Schema names ordered so every schema follows its dependencies.

        Raises:
            CircularDependencyError: the batch's dependency graph has a cycle
        """
        graph = self.build_dependency_graph(schemas)
        resolved: List[str] = []
        visited = set()
        visiting = set()

        def visit(node: str) -> None:
            if node in visiting:
                raise CircularDependencyError(node)
            if node in visited:
                return
            visiting.add(node)
            for dep in graph.get(node, []):
                if dep in graph:
                    visit(dep)
            visiting.discard(node)
            visited.add(node)
            resolved.append(node)

        for node in graph:
            if node not in visited:
                visit(node)

        return resolved

    def build_dependency_graph(
        self,
        schemas: Mapping[str, SchemaDefinition],
    ) -> Dict[str, List[str]]:
        """Schema name -> names of batch schemas it depends on."""
        by_table = {}
        for name, schema in schemas.items():
            by_table.setdefault(schema.table_name, name)

        graph: Dict[str, List[str]] = {}
        for name, schema in schemas.items():
            deps = []
            for table in schema.dependencies:
                if table in by_table:
                    deps.append(by_table[table])
                else:
                    logger.debug(f"{name} depends on {table}, outside this batch (assumed to exist)")
            graph[name] = deps
        return graph

    def is_schema_up_to_date(self, schema_name: str, version: str) -> bool:
        return self._versions.get(schema_name) == version

    def get_state(self, schema_name: str, table_name: str) -> SchemaState:
        """Current lifecycle state of a (schema name, table name) key."""
        key = self.locks.make_key(schema_name, table_name)
        if self.locks.is_locked(key):
            return SchemaState.LOCKED
        return self._states.get(key, SchemaState.UNINITIALIZED)

    def reset(self) -> None:
        """
        Forget every initialized version and lock. Does not touch the database.

        Primarily for testing.
        """
        self._versions.clear()
        self._states.clear()
        self.locks.clear()
        logger.debug("Schema manager state reset")

    # ========================================================================
    # PER-SCHEMA INITIALIZATION
    # ========================================================================

    async def _initialize_schema(
        self,
        db: SchemaDatabase,
        schema_name: str,
        schema: SchemaDefinition,
        force: bool,
    ) -> bool:
        """
        Returns:
            True if this call initialized (or joined an initialization of)
            the schema, False if it was already up to date
        """
        key = self.locks.make_key(schema_name, schema.table_name)

        if not force and self.is_schema_up_to_date(schema_name, schema.version):
            logger.debug(f"Skipping {schema_name}, already at version {schema.version}")
            self._states[key] = SchemaState.SKIPPED
            return False

        async def perform() -> None:
            await self._perform_initialization(db, schema_name, schema, force)
            self._versions[schema_name] = schema.version
            self._states[key] = SchemaState.INITIALIZED

        await self.locks.run(key, perform)
        return True

    async def _perform_initialization(
        self,
        db: SchemaDatabase,
        schema_name: str,
        schema: SchemaDefinition,
        force: bool,
    ) -> None:
        table = schema.table_name
        logger.debug(f"Initializing {schema_name} ({table})")

        try:
            exists = await db.table_exists(table)
            if exists and force:
                logger.warning(f"Force mode: dropping and recreating {table}")
                await db.query(render(TableBuilder.drop(table)))
                await self._create_table(db, schema)
            elif not exists:
                await self._create_table(db, schema)
        except Exception as e:
            raise SchemaInitializationError(schema_name, table, e) from e

        if exists and not force:
            await self._evolve_table(db, schema)

    async def _create_table(self, db: SchemaDatabase, schema: SchemaDefinition) -> None:
        table = schema.table_name

        await db.query(render(TableBuilder.create(table, schema.columns, schema.foreign_keys)))
        for index in schema.indexes:
            await db.query(render(IndexBuilder.create(table, index)))

        if schema.triggers and self.defaults.create_triggers and supports_triggers(db):
            for trigger in schema.triggers:
                await db.query(render(TriggerBuilder.create(table, trigger)))

        logger.info(f"Created table {table} ({len(schema.columns)} columns, {len(schema.indexes)} indexes)")

    async def _evolve_table(self, db: SchemaDatabase, schema: SchemaDefinition) -> None:
        """
        Add columns and indexes the live table is missing.

        Never drops, renames, or retypes. Failures are logged, not raised.
        """
        table = schema.table_name

        if not supports_evolution(db):
            logger.info(f"Schema evolution not supported by {type(db).__name__}, skipping {table}")
            return

        try:
            current = coerce_table_schema(await db.get_table_schema(table))
            if current is None:
                logger.warning(f"Could not retrieve schema for {table}")
                return

            added_columns = []
            for name, column in schema.columns.items():
                if not current.has_column(name):
                    await db.add_column(table, name, column)
                    added_columns.append(name)

            added_indexes = []
            for index in schema.indexes:
                if not current.has_index(index.name):
                    await db.add_index(table, index)
                    added_indexes.append(index.name)

            if (added_columns or added_indexes) and self.defaults.log_evolution:
                logger.info(
                    f"Evolved {table}: added columns {added_columns}, added indexes {added_indexes}"
                )

        except Exception as e:
            logger.error(f"Failed to evolve schema for {table}: {e}")

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.monotonic() - started) * 1000.0


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RuntimeSchemaManager",
    "InitializationResult",
    "DEPENDENCY_RESOLUTION",
]
