# ============================================================================
# DDL UTILITIES
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - DRY utilities for SQL DDL generation
# PURPOSE: Type mapping, literal escaping, table/index/trigger builders
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: TYPE_MAP, get_sql_type, sql_literal, render, TableBuilder,
#          ColumnBuilder, IndexBuilder, TriggerBuilder, to_snake_case,
#          class_name_to_table_name
# DEPENDENCIES: psycopg
# ============================================================================
"""
DDL Utilities - Shared SQL Generation Patterns.

All builders return psycopg.sql.Composed objects. Identifiers are always
composed with sql.Identifier and Python values with sql.Literal, so names
and literal values are quoted and escaped by psycopg, never concatenated.

Column types, DEFAULT expressions, CHECK constraints, WHERE clauses and
trigger bodies are raw SQL fragments taken from the schema definition.

Usage:
    from core.schema.ddl_utils import IndexBuilder, render

    stmt = IndexBuilder.create(table="products", index=index_def)
    print(render(stmt))
    # CREATE INDEX IF NOT EXISTS "idx_products_updated_at" ON "products" ("updated_at")
"""

import json
import re
from typing import Any, Dict, List, Optional

from psycopg import sql

from core.config import SchemaDefaults, get_defaults
from core.contracts import FieldType, ReferentialAction
from core.models.schema import (
    ColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    TriggerDefinition,
)


# ============================================================================
# TYPE MAPPING
# ============================================================================

TYPE_MAP: Dict[FieldType, str] = {
    FieldType.TEXT: "TEXT",
    FieldType.INTEGER: "INTEGER",
    FieldType.DECIMAL: "REAL",
    FieldType.BOOLEAN: "BOOLEAN",
    FieldType.DATETIME: "DATETIME",
    FieldType.JSON: "JSON",
    # Relational columns store the referenced table's TEXT id
    FieldType.FOREIGN_KEY: "TEXT",
    FieldType.ONE_TO_MANY: "TEXT",
    FieldType.MANY_TO_MANY: "TEXT",
}

FALLBACK_TYPE = "TEXT"

# Column types whose '' / NULL defaults need an explicit CAST
TEXT_TYPES = ("TEXT", "VARCHAR", "CHARACTER VARYING", "STRING")


def get_sql_type(field_type: Any, defaults: Optional[SchemaDefaults] = None) -> str:
    """
    Map a field type to its SQL column type.

    Never raises: unknown types map to TEXT so that registering a class
    with an unusual field never blocks.

    Args:
        field_type: FieldType member or raw type string
        defaults: Dialect spellings (defaults to global SchemaDefaults)

    Returns:
        SQL type string
    """
    defaults = defaults or get_defaults().schema

    try:
        resolved = FieldType(field_type)
    except ValueError:
        return FALLBACK_TYPE

    if resolved is FieldType.DATETIME:
        return defaults.datetime_type
    if resolved is FieldType.JSON:
        return defaults.json_type
    return TYPE_MAP.get(resolved, FALLBACK_TYPE)


def is_text_type(sql_type: str) -> bool:
    """True for TEXT-like column types, including VARCHAR(n)."""
    base = sql_type.split("(", 1)[0].strip().upper()
    return base in TEXT_TYPES


# ============================================================================
# LITERALS & RENDERING
# ============================================================================

def render(statement: sql.Composable) -> str:
    """Render a composed statement to text without a live connection."""
    return statement.as_string(None)


def sql_literal(value: Any) -> str:
    """
    Escape a Python value as SQL literal text.

    Strings are single-quoted with embedded quotes doubled; None becomes
    NULL; booleans become true/false; dicts and lists are stored as JSON
    text.

    Examples:
        sql_literal("it's")  -> "'it''s'"
        sql_literal("")      -> "''"
        sql_literal(0)       -> "0"
        sql_literal(None)    -> "NULL"
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        value = json.dumps(value, sort_keys=True)
    if isinstance(value, (int, float)):
        return str(value)
    return render(sql.Literal(str(value)))


def is_empty_or_null_literal(default_value: str) -> bool:
    """True for the '' and NULL defaults engines type as ANY."""
    return default_value.strip().upper() in ("''", "NULL")


# ============================================================================
# NAMING
# ============================================================================

def to_snake_case(name: str) -> str:
    """
    Convert CamelCase / camelCase to snake_case.

    Examples:
        to_snake_case("startDate")    -> "start_date"
        to_snake_case("HTTPRequest")  -> "http_request"
    """
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    s = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s)
    return s.replace("-", "_").lower()


def class_name_to_table_name(class_name: str) -> str:
    """
    Convert a class name to a pluralised snake_case table name.

    Examples:
        class_name_to_table_name("Product")      -> "products"
        class_name_to_table_name("Category")     -> "categories"
        class_name_to_table_name("MeetingNotes") -> "meeting_notes"
    """
    table = to_snake_case(class_name)
    if table.endswith("s"):
        return table
    if re.search(r"[^aeiou]y$", table):
        return table[:-1] + "ies"
    return table + "s"


# ============================================================================
# COLUMN BUILDER
# ============================================================================

class ColumnBuilder:
    """
    Builder for column clauses.

    Clause order: type, PRIMARY KEY, NOT NULL, UNIQUE, DEFAULT, CHECK.
    """

    @staticmethod
    def default(column: ColumnDefinition) -> Optional[sql.Composed]:
        """
        DEFAULT clause.

        TEXT-like columns with a '' or NULL default render the value inside
        CAST(... AS TEXT): analytic engines otherwise infer an untyped
        column from the bare literal and reject later typed writes.
        """
        if column.default_value is None:
            return None

        value = sql.SQL(column.default_value)
        if is_text_type(column.type) and is_empty_or_null_literal(column.default_value):
            return sql.SQL("DEFAULT CAST({} AS TEXT)").format(value)
        return sql.SQL("DEFAULT {}").format(value)

    @staticmethod
    def clause(
        name: str,
        column: ColumnDefinition,
        include_primary_key: bool = True,
    ) -> sql.Composed:
        """
        Full column definition.

        Args:
            name: Column name
            column: Column definition
            include_primary_key: False for ALTER TABLE ADD COLUMN

        Returns:
            sql.Composed column clause
        """
        parts: List[sql.Composable] = [sql.Identifier(name), sql.SQL(column.type)]

        if column.primary_key and include_primary_key:
            parts.append(sql.SQL("PRIMARY KEY"))
        if column.not_null:
            parts.append(sql.SQL("NOT NULL"))
        if column.unique and not column.primary_key:
            parts.append(sql.SQL("UNIQUE"))

        default = ColumnBuilder.default(column)
        if default is not None:
            parts.append(default)

        if column.check:
            parts.append(sql.SQL("CHECK ({})").format(sql.SQL(column.check)))

        return sql.SQL(" ").join(parts)

    @staticmethod
    def foreign_key(fk: ForeignKeyDefinition) -> sql.Composed:
        """Table-level FOREIGN KEY constraint."""
        stmt = sql.SQL("FOREIGN KEY ({column}) REFERENCES {table} ({ref_column})").format(
            column=sql.Identifier(fk.column),
            table=sql.Identifier(fk.references_table),
            ref_column=sql.Identifier(fk.references_column),
        )
        if fk.on_delete:
            stmt = sql.SQL("{} ON DELETE {}").format(
                stmt, sql.SQL(ReferentialAction(fk.on_delete).value)
            )
        if fk.on_update:
            stmt = sql.SQL("{} ON UPDATE {}").format(
                stmt, sql.SQL(ReferentialAction(fk.on_update).value)
            )
        return stmt


# ============================================================================
# TABLE BUILDER
# ============================================================================

class TableBuilder:
    """
    Builder for table-level DDL statements.
    """

    @staticmethod
    def create(
        table: str,
        columns: Dict[str, ColumnDefinition],
        foreign_keys: Optional[List[ForeignKeyDefinition]] = None,
    ) -> sql.Composed:
        """
        CREATE TABLE IF NOT EXISTS with column clauses then FK constraints.
        """
        parts = [ColumnBuilder.clause(name, col) for name, col in columns.items()]
        parts.extend(ColumnBuilder.foreign_key(fk) for fk in foreign_keys or [])

        return sql.SQL("CREATE TABLE IF NOT EXISTS {table} (\n  {body}\n)").format(
            table=sql.Identifier(table),
            body=sql.SQL(",\n  ").join(parts),
        )

    @staticmethod
    def drop(table: str) -> sql.Composed:
        """DROP TABLE IF EXISTS (destructive: force mode only)."""
        return sql.SQL("DROP TABLE IF EXISTS {}").format(sql.Identifier(table))

    @staticmethod
    def add_column(table: str, name: str, column: ColumnDefinition) -> sql.Composed:
        """ALTER TABLE ... ADD COLUMN (additive evolution)."""
        return sql.SQL("ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column}").format(
            table=sql.Identifier(table),
            column=ColumnBuilder.clause(name, column, include_primary_key=False),
        )


# ============================================================================
# INDEX BUILDER
# ============================================================================

class IndexBuilder:
    """
    Builder for index DDL statements.
    """

    @staticmethod
    def generate_index_name(
        table: str,
        columns: List[str],
        prefix: str = "idx",
        suffix: str = "",
    ) -> str:
        """Generate conventional index name."""
        name = f"{prefix}_{table}_{'_'.join(columns)}"
        if suffix:
            name = f"{name}_{suffix}"
        return name

    @staticmethod
    def create(table: str, index: IndexDefinition) -> sql.Composed:
        """
        CREATE [UNIQUE] INDEX IF NOT EXISTS, with optional partial WHERE.
        """
        template = (
            "CREATE UNIQUE INDEX IF NOT EXISTS {name} ON {table} ({columns})"
            if index.unique
            else "CREATE INDEX IF NOT EXISTS {name} ON {table} ({columns})"
        )
        stmt = sql.SQL(template).format(
            name=sql.Identifier(index.name),
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in index.columns),
        )

        if index.where:
            stmt = sql.SQL("{} WHERE {}").format(stmt, sql.SQL(index.where))

        return stmt


# ============================================================================
# TRIGGER BUILDER
# ============================================================================

class TriggerBuilder:
    """
    Builder for trigger DDL statements.
    """

    @staticmethod
    def create(table: str, trigger: TriggerDefinition) -> sql.Composed:
        """
        CREATE TRIGGER IF NOT EXISTS ... FOR EACH ROW [WHEN (...)] BEGIN ... END
        """
        stmt = sql.SQL("CREATE TRIGGER IF NOT EXISTS {name} {timing} {event} ON {table} FOR EACH ROW").format(
            name=sql.Identifier(trigger.name),
            timing=sql.SQL(trigger.timing.value),
            event=sql.SQL(trigger.event.value),
            table=sql.Identifier(trigger.table or table),
        )
        if trigger.condition:
            stmt = sql.SQL("{} WHEN ({})").format(stmt, sql.SQL(trigger.condition))

        return sql.SQL("{} BEGIN {} END").format(stmt, sql.SQL(trigger.body))

    @staticmethod
    def updated_at(table: str, timestamp_expression: str, key_column: str = "id") -> TriggerDefinition:
        """
        Trigger definition keeping updated_at current on UPDATE.
        """
        body = sql.SQL("UPDATE {table} SET {column} = {now} WHERE {key} = NEW.{key};").format(
            table=sql.Identifier(table),
            column=sql.Identifier("updated_at"),
            now=sql.SQL(timestamp_expression),
            key=sql.Identifier(key_column),
        )
        return TriggerDefinition(
            name=f"trg_{table}_updated_at",
            timing="BEFORE",
            event="UPDATE",
            body=render(body),
            table=table,
            description="Automatically update updated_at timestamp",
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "TYPE_MAP",
    "FALLBACK_TYPE",
    "get_sql_type",
    "is_text_type",
    "render",
    "sql_literal",
    "is_empty_or_null_literal",
    "to_snake_case",
    "class_name_to_table_name",
    "ColumnBuilder",
    "TableBuilder",
    "IndexBuilder",
    "TriggerBuilder",
]
