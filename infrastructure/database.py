# ============================================================================
# SCHEMA DATABASE PROTOCOL
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Infrastructure - Database collaborator contract
# PURPOSE: Minimal async surface the runtime schema manager needs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Schema Database Protocol

The runtime schema manager talks to the database through this protocol
only. Two methods are required; three more are optional and together
enable additive evolution of existing tables:

    required:  query(sql), table_exists(table)
    optional:  get_table_schema(table), add_column(table, name, column),
               add_index(table, index)

Adapters that can run CREATE TRIGGER set `supports_triggers = True`.

Usage:
    if supports_evolution(db):
        existing = await db.get_table_schema("products")
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from core.models.schema import ColumnDefinition, IndexDefinition


@dataclass
class TableSchema:
    """Introspected shape of an existing table."""
    columns: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    indexes: List[str] = field(default_factory=list)

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def has_index(self, name: str) -> bool:
        return name in self.indexes


@runtime_checkable
class SchemaDatabase(Protocol):
    """Required collaborator surface."""

    async def query(self, sql: str) -> Any:
        ...

    async def table_exists(self, table: str) -> bool:
        ...


@runtime_checkable
class EvolvableSchemaDatabase(SchemaDatabase, Protocol):
    """Collaborator that can also introspect and extend existing tables."""

    async def get_table_schema(self, table: str) -> Optional[TableSchema]:
        ...

    async def add_column(self, table: str, name: str, column: ColumnDefinition) -> None:
        ...

    async def add_index(self, table: str, index: IndexDefinition) -> None:
        ...


EVOLUTION_METHODS = ("get_table_schema", "add_column", "add_index")


def supports_evolution(db: Any) -> bool:
    """True when db exposes all three evolution methods."""
    return all(callable(getattr(db, name, None)) for name in EVOLUTION_METHODS)


def supports_triggers(db: Any) -> bool:
    return bool(getattr(db, "supports_triggers", False))


def coerce_table_schema(value: Any) -> Optional[TableSchema]:
    """
    Accept a TableSchema or the plain dict shape {"columns": {...}, "indexes": [...]}.

    Index entries may be names or dicts with a "name" key.
    """
    if value is None or isinstance(value, TableSchema):
        return value
    columns = dict(value.get("columns") or {})
    indexes = [
        entry["name"] if isinstance(entry, dict) else str(entry)
        for entry in value.get("indexes") or []
    ]
    return TableSchema(columns=columns, indexes=indexes)


__all__ = [
    "TableSchema",
    "SchemaDatabase",
    "EvolvableSchemaDatabase",
    "supports_evolution",
    "supports_triggers",
    "coerce_table_schema",
]
