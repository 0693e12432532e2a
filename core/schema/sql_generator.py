# ============================================================================
# SCHEMA GENERATOR
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Field metadata to schema definition and DDL
# PURPOSE: Generate SchemaDefinitions and CREATE statements from field maps
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: SchemaGenerator, VersionStrategy
# DEPENDENCIES: pydantic, psycopg
# ============================================================================
"""
Field Metadata to Schema Generator.

Turns an ordered name -> FieldDefinition mapping plus ClassMetadata into a
SchemaDefinition, and a SchemaDefinition into DDL text.

Generation is pure and total: unknown field types fall back to TEXT and
malformed relation targets are ignored, so a class can always be
registered.

Injected columns (unless the field map already supplies them):
    - id          TEXT PRIMARY KEY (replaced by a field flagged primary_key)
    - slug        TEXT NOT NULL          (slug identity only)
    - context     TEXT NOT NULL ''       (slug identity only)
    - created_at  DATETIME NOT NULL DEFAULT <timestamp_default>
    - updated_at  DATETIME NOT NULL DEFAULT <timestamp_default>

Usage:
    generator = SchemaGenerator()
    schema = generator.generate_schema(fields, ClassMetadata(class_name="Product"))
    print(generator.generate_sql(schema))
"""

import logging
import re
from enum import Enum
from typing import Dict, List, Mapping, Optional

from core.config import SchemaDefaults, get_defaults
from core.contracts import FieldType, ReferentialAction
from core.models.fields import ClassMetadata, FieldDefinition
from core.models.schema import (
    ColumnDefinition,
    ForeignKeyDefinition,
    ForeignKeyReference,
    IndexDefinition,
    SchemaDefinition,
    TriggerDefinition,
)
from core.schema.ddl_utils import (
    IndexBuilder,
    TableBuilder,
    TriggerBuilder,
    class_name_to_table_name,
    get_sql_type,
    render,
    sql_literal,
    to_snake_case,
)
from core.schema.versioning import content_hash

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = ("created_at", "updated_at")
SLUG_COLUMNS = ("slug", "context")

# camelCase spellings callers use for the injected columns
_COLUMN_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


class VersionStrategy(str, Enum):
    """What the version hash is computed over."""
    DEFINITION = "definition"   # build-time: class name, fields, base class
    COLUMNS = "columns"         # live registry: resulting column set


def extract_foreign_keys(columns: Mapping[str, ColumnDefinition]) -> List[ForeignKeyDefinition]:
    """Table-level foreign keys derived from column-level references."""
    return [
        ForeignKeyDefinition(
            column=name,
            references_table=col.foreign_key.table,
            references_column=col.foreign_key.column,
            on_delete=col.foreign_key.on_delete,
            on_update=col.foreign_key.on_update,
        )
        for name, col in columns.items()
        if col.foreign_key is not None
    ]


def extract_package_name(file_path: Optional[str]) -> str:
    """Package name from a monorepo path (packages/<name>/...)."""
    if file_path:
        match = re.search(r"packages[/\\]([^/\\]+)", file_path)
        if match:
            return match.group(1)
    return "unknown"


class SchemaGenerator:
    """
    Convert field metadata to SchemaDefinitions and DDL.

    Stateless apart from its defaults; one instance can serve every class.
    """

    def __init__(self, defaults: Optional[SchemaDefaults] = None):
        """
        Initialize the generator.

        Args:
            defaults: Dialect and naming defaults (global defaults if None)
        """
        self.defaults = defaults or get_defaults().schema

    # =========================================================================
    # SCHEMA GENERATION
    # =========================================================================

    def generate_schema(
        self,
        fields: Mapping[str, FieldDefinition],
        class_meta: ClassMetadata,
        version_strategy: VersionStrategy = VersionStrategy.DEFINITION,
    ) -> SchemaDefinition:
        """
        Generate a SchemaDefinition from a field map.

        Args:
            fields: Ordered field name -> FieldDefinition
            class_meta: Class name, table name, base class, package
            version_strategy: DEFINITION (build time) or COLUMNS (live registry)

        Returns:
            SchemaDefinition with columns, indexes, triggers, foreign keys,
            dependencies and version populated
        """
        table_name = self.get_table_name(class_meta)

        columns = self.generate_columns(fields, class_meta)
        indexes = self.generate_indexes(table_name, columns, class_meta)
        triggers = self.generate_triggers(table_name, columns)
        foreign_keys = extract_foreign_keys(columns)
        dependencies = self.extract_dependencies(class_meta, foreign_keys, table_name)

        if VersionStrategy(version_strategy) is VersionStrategy.COLUMNS:
            version = content_hash(columns, self.defaults.hash_length)
        else:
            version = self.generate_version(fields, class_meta)

        logger.debug(
            f"Generated schema {table_name} from {class_meta.class_name} "
            f"({len(columns)} columns, {len(indexes)} indexes, version {version})"
        )

        return SchemaDefinition(
            table_name=table_name,
            columns=columns,
            indexes=indexes,
            triggers=triggers,
            foreign_keys=foreign_keys,
            dependencies=dependencies,
            version=version,
            package_name=class_meta.package_name or extract_package_name(class_meta.file_path),
            base_class=class_meta.base_class,
        )

    def generate_version(
        self,
        fields: Mapping[str, FieldDefinition],
        class_meta: ClassMetadata,
    ) -> str:
        """Version over {class name, field set, base class}."""
        return content_hash(
            {
                "className": class_meta.class_name,
                "fields": {name: f.version_payload() for name, f in fields.items()},
                "extends": class_meta.base_class,
            },
            self.defaults.hash_length,
        )

    def get_table_name(self, class_meta: ClassMetadata) -> str:
        return class_meta.table_name or class_name_to_table_name(class_meta.class_name)

    # =========================================================================
    # COLUMNS
    # =========================================================================

    def generate_columns(
        self,
        fields: Mapping[str, FieldDefinition],
        class_meta: ClassMetadata,
    ) -> Dict[str, ColumnDefinition]:
        """
        Column definitions: injected identity columns, then fields, then
        injected timestamps.
        """
        field_columns: Dict[str, ColumnDefinition] = {}
        custom_pk = False

        for field_name, field_def in fields.items():
            if field_def.field_type is not None and field_def.field_type.is_virtual():
                continue

            column_name = self._column_name(field_name)
            if column_name in field_columns:
                # createdAt and created_at collapse to one column
                continue

            column = self.field_to_column(field_def)
            if column.primary_key:
                custom_pk = True
            field_columns[column_name] = column

        columns: Dict[str, ColumnDefinition] = {}

        if not custom_pk and "id" not in field_columns:
            columns["id"] = ColumnDefinition(
                type="TEXT",
                primary_key=True,
                not_null=True,
                description="Primary identifier",
            )
        elif not custom_pk:
            field_columns["id"] = field_columns["id"].model_copy(
                update={"primary_key": True, "not_null": True}
            )

        if self._uses_slug_identity(class_meta, custom_pk):
            if "slug" not in field_columns:
                columns["slug"] = ColumnDefinition(
                    type="TEXT",
                    not_null=True,
                    description="URL-safe identifier, unique within context",
                )
            if "context" not in field_columns:
                columns["context"] = ColumnDefinition(
                    type="TEXT",
                    not_null=True,
                    default_value="''",
                    description="Scoping context for slug uniqueness",
                )

        columns.update(field_columns)

        for name, description in (
            ("created_at", "Creation timestamp"),
            ("updated_at", "Last update timestamp"),
        ):
            if name not in columns:
                columns[name] = ColumnDefinition(
                    type=self.defaults.datetime_type,
                    not_null=True,
                    default_value=self.defaults.timestamp_default,
                    description=description,
                )

        return columns

    def field_to_column(self, field_def: FieldDefinition) -> ColumnDefinition:
        """
        Convert one field to a column.

        Nullable TEXT columns without a default become NOT NULL DEFAULT ''.
        Engines that infer column types from defaults otherwise type a bare
        nullable TEXT column as ANY and later reject typed upserts.
        """
        sql_type = get_sql_type(field_def.type, self.defaults)

        column = ColumnDefinition(
            type=sql_type,
            primary_key=field_def.primary_key,
            not_null=field_def.required or field_def.primary_key,
            unique=field_def.unique,
            description=field_def.description,
        )

        if field_def.has_default:
            column.default_value = sql_literal(field_def.default)
        elif not field_def.required and not field_def.primary_key and sql_type == "TEXT":
            column.not_null = True
            column.default_value = "''"

        if field_def.field_type is FieldType.FOREIGN_KEY and field_def.related:
            column.foreign_key = self._foreign_key_reference(field_def)

        return column

    def _foreign_key_reference(self, field_def: FieldDefinition) -> ForeignKeyReference:
        target, _, target_column = field_def.related.partition(".")
        on_delete = field_def.on_delete or ReferentialAction.parse(self.defaults.default_on_delete)
        return ForeignKeyReference(
            table=self._relation_table(target),
            column=target_column or "id",
            on_delete=on_delete,
            on_update=ReferentialAction.parse(self.defaults.default_on_update),
        )

    @staticmethod
    def _relation_table(target: str) -> str:
        # Class names (Category) become tables; table names pass through
        if target[:1].isupper():
            return class_name_to_table_name(target)
        return target

    @staticmethod
    def _column_name(field_name: str) -> str:
        if field_name in _COLUMN_ALIASES:
            return _COLUMN_ALIASES[field_name]
        return to_snake_case(field_name)

    @staticmethod
    def _uses_slug_identity(class_meta: ClassMetadata, custom_pk: bool) -> bool:
        return class_meta.slug_identity and not custom_pk

    # =========================================================================
    # INDEXES, TRIGGERS, DEPENDENCIES
    # =========================================================================

    def generate_indexes(
        self,
        table_name: str,
        columns: Mapping[str, ColumnDefinition],
        class_meta: ClassMetadata,
    ) -> List[IndexDefinition]:
        """
        Index policy:
            - one index per foreign key column
            - updated_at (most common sort/filter)
            - one unique index per unique non-PK column
            - unique (slug, context) for slug identity
        """
        indexes: List[IndexDefinition] = []

        for name, col in columns.items():
            if col.foreign_key is not None:
                indexes.append(IndexDefinition(
                    name=IndexBuilder.generate_index_name(table_name, [name]),
                    columns=[name],
                    description=f"Index for foreign key {name}",
                ))

        if "updated_at" in columns:
            indexes.append(IndexDefinition(
                name=IndexBuilder.generate_index_name(table_name, ["updated_at"]),
                columns=["updated_at"],
                description="Index for timestamp queries",
            ))

        for name, col in columns.items():
            if col.unique and not col.primary_key:
                indexes.append(IndexDefinition(
                    name=IndexBuilder.generate_index_name(table_name, [name], suffix="unique"),
                    columns=[name],
                    unique=True,
                    description=f"Unique index for {name}",
                ))

        if all(c in columns for c in SLUG_COLUMNS) and class_meta.slug_identity:
            if not any(col.primary_key for name, col in columns.items() if name != "id"):
                indexes.append(IndexDefinition(
                    name=IndexBuilder.generate_index_name(table_name, list(SLUG_COLUMNS)),
                    columns=list(SLUG_COLUMNS),
                    unique=True,
                    description="Slug is unique within its context",
                ))

        return indexes

    def generate_triggers(
        self,
        table_name: str,
        columns: Mapping[str, ColumnDefinition],
    ) -> List[TriggerDefinition]:
        """updated_at maintenance trigger, keyed on the primary key column."""
        if "updated_at" not in columns:
            return []
        key_column = next(
            (name for name, col in columns.items() if col.primary_key),
            "id",
        )
        return [
            TriggerBuilder.updated_at(table_name, self.defaults.timestamp_default, key_column)
        ]

    def extract_dependencies(
        self,
        class_meta: ClassMetadata,
        foreign_keys: List[ForeignKeyDefinition],
        table_name: Optional[str] = None,
    ) -> List[str]:
        """FK target tables plus the base class's table (if it owns one)."""
        dependencies: List[str] = []

        for fk in foreign_keys:
            if fk.references_table not in dependencies and fk.references_table != table_name:
                dependencies.append(fk.references_table)

        base = class_meta.base_class
        if base and base not in self.defaults.root_base_classes:
            base_table = class_name_to_table_name(base)
            if base_table not in dependencies:
                dependencies.append(base_table)

        return dependencies

    # =========================================================================
    # DDL
    # =========================================================================

    def generate_statements(self, schema: SchemaDefinition) -> List[str]:
        """CREATE TABLE followed by one CREATE INDEX per index."""
        statements = [
            render(TableBuilder.create(schema.table_name, schema.columns, schema.foreign_keys))
        ]
        statements.extend(
            render(IndexBuilder.create(schema.table_name, index)) for index in schema.indexes
        )
        return statements

    def generate_sql(self, schema: SchemaDefinition) -> str:
        """
        DDL text for a schema.

        Returns:
            Semicolon-terminated statements separated by newlines
        """
        return "\n".join(f"{stmt};" for stmt in self.generate_statements(schema))

    def generate_trigger_sql(self, schema: SchemaDefinition) -> List[str]:
        """CREATE TRIGGER statements for a schema's triggers."""
        return [
            render(TriggerBuilder.create(schema.table_name, trigger))
            for trigger in schema.triggers
        ]


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SchemaGenerator",
    "VersionStrategy",
    "extract_foreign_keys",
    "extract_package_name",
]
