# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Foundation - Core enums and exception contracts
# PURPOSE: Define field types, DDL vocabularies, and schema lifecycle states
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: FieldType, ReferentialAction, TriggerTiming, TriggerEvent,
#          SchemaState, SchemaError, CircularDependencyError,
#          SchemaInitializationError
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the schema coordination system.

These define the vocabularies that cross boundaries:
- Field metadata (class registration / source scan)
- Schema definitions (generator, override system)
- Database DDL (runtime schema manager)
"""

from enum import Enum
from typing import Optional


# ============================================================================
# FIELD TYPES
# ============================================================================

class FieldType(str, Enum):
    """
    Field types accepted from class metadata.

    Relational types reference another table by name. Only FOREIGN_KEY
    materialises a column; ONE_TO_MANY and MANY_TO_MANY live on the other
    side of the relation.
    """
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    JSON = "json"
    FOREIGN_KEY = "foreignKey"
    ONE_TO_MANY = "oneToMany"
    MANY_TO_MANY = "manyToMany"

    def is_relational(self) -> bool:
        """Check if this field type points at another table."""
        return self in (
            FieldType.FOREIGN_KEY,
            FieldType.ONE_TO_MANY,
            FieldType.MANY_TO_MANY,
        )

    def is_virtual(self) -> bool:
        """Check if this field type has no column of its own."""
        return self in (FieldType.ONE_TO_MANY, FieldType.MANY_TO_MANY)


# ============================================================================
# DDL VOCABULARIES
# ============================================================================

class ReferentialAction(str, Enum):
    """ON DELETE / ON UPDATE actions for foreign keys."""
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"
    SET_DEFAULT = "SET DEFAULT"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ReferentialAction"]:
        """
        Parse loose spellings ('cascade', 'set_null', 'SET NULL', 'no_action').

        Returns None for unknown or empty values.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper().replace("_", " ")
        for member in cls:
            if member.value == normalized:
                return member
        return None


class TriggerTiming(str, Enum):
    """When a trigger fires relative to the event."""
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    INSTEAD_OF = "INSTEAD OF"


class TriggerEvent(str, Enum):
    """Row event a trigger fires on."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ============================================================================
# SCHEMA LIFECYCLE
# ============================================================================

class SchemaState(str, Enum):
    """
    Lifecycle of one (schema name, table name) key in a coordinator.

    State transitions:
        UNINITIALIZED -> LOCKED -> INITIALIZED
        INITIALIZED -> SKIPPED       (same version requested again)
        INITIALIZED -> LOCKED        (new version, evolution path)
        any -> UNINITIALIZED         (reset, test only)
    """
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    INITIALIZED = "initialized"
    SKIPPED = "skipped"

    def is_settled(self) -> bool:
        """Check if no DDL is in flight for this key."""
        return self is not SchemaState.LOCKED


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SchemaError(Exception):
    """Base class for schema coordination failures."""


class CircularDependencyError(SchemaError):
    """
    Raised when the dependency graph of a batch contains a cycle.

    Batch-fatal: no schema in the batch is touched.
    """

    def __init__(self, node: str):
        self.node = node
        super().__init__(f"Circular dependency detected involving {node}")


class SchemaInitializationError(SchemaError):
    """Raised when creating or recreating one table fails."""

    def __init__(self, schema_name: str, table_name: str, cause: Exception):
        self.schema_name = schema_name
        self.table_name = table_name
        self.cause = cause
        super().__init__(str(cause))


__all__ = [
    "FieldType",
    "ReferentialAction",
    "TriggerTiming",
    "TriggerEvent",
    "SchemaState",
    "SchemaError",
    "CircularDependencyError",
    "SchemaInitializationError",
]
