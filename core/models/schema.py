# ============================================================================
# SCHEMA DEFINITION MODELS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core model - Table schema structures
# PURPOSE: Structured description of tables, patches, and manifests
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ColumnDefinition, ForeignKeyReference, IndexDefinition,
#          TriggerDefinition, ForeignKeyDefinition, SchemaDefinition,
#          SchemaOverride, SchemaManifest
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Definition Models

A SchemaDefinition is the single structured description of one table:
columns, indexes, triggers, foreign keys, the tables it must be created
after, and a content-derived version.

Serialized form (manifests, scan output) uses camelCase keys:

    {
        "tableName": "products",
        "columns": {"id": {"type": "TEXT", "primaryKey": true}},
        "indexes": [], "triggers": [], "foreignKeys": [],
        "dependencies": [], "version": "3f2a9c1e"
    }
"""

from typing import Annotated, Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.contracts import ReferentialAction, TriggerEvent, TriggerTiming


class _SchemaModel(BaseModel):
    """Shared config: camelCase aliases, snake_case attribute access."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _parse_action(value: Any) -> Any:
    """Normalize loose ON DELETE / ON UPDATE spellings; unknown values fail validation."""
    return ReferentialAction.parse(value) or value


Action = Annotated[ReferentialAction, BeforeValidator(_parse_action)]


# ============================================================================
# COLUMN-LEVEL
# ============================================================================

class ForeignKeyReference(_SchemaModel):
    """Column-level foreign key target."""

    table: str
    column: str = "id"
    on_delete: Optional[Action] = None
    on_update: Optional[Action] = None


class ColumnDefinition(_SchemaModel):
    """
    One column of a table.

    `default_value` is a raw SQL fragment: a quoted literal ("'active'",
    "''"), a number ("0"), NULL, or an expression ("CURRENT_TIMESTAMP").
    The generator produces escaped literals; hand-written overrides are
    taken as given.
    """

    type: str = "TEXT"
    primary_key: bool = False
    not_null: bool = False
    unique: bool = False
    default_value: Optional[str] = None
    foreign_key: Optional[ForeignKeyReference] = None
    check: Optional[str] = None
    description: Optional[str] = None

    @field_validator("default_value", mode="before")
    @classmethod
    def _stringify_default(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


# ============================================================================
# TABLE-LEVEL
# ============================================================================

class IndexDefinition(_SchemaModel):
    """Index over an ordered column list, optionally unique or partial."""

    name: str
    columns: List[str]
    unique: bool = False
    where: Optional[str] = None
    description: Optional[str] = None


class TriggerDefinition(_SchemaModel):
    """Row trigger attached to a table."""

    name: str
    timing: TriggerTiming = Field(
        default=TriggerTiming.BEFORE,
        validation_alias=AliasChoices("timing", "when"),
    )
    event: TriggerEvent
    body: str
    table: Optional[str] = None
    condition: Optional[str] = None
    description: Optional[str] = None


class ForeignKeyDefinition(_SchemaModel):
    """Table-level foreign key constraint."""

    column: str
    references_table: str
    references_column: str = "id"
    on_delete: Optional[Action] = None
    on_update: Optional[Action] = None


class SchemaDefinition(_SchemaModel):
    """Complete description of one table."""

    table_name: str
    columns: Dict[str, ColumnDefinition] = Field(default_factory=dict)
    indexes: List[IndexDefinition] = Field(default_factory=list)
    triggers: List[TriggerDefinition] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyDefinition] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    version: str = ""
    package_name: Optional[str] = None
    base_class: Optional[str] = None

    def clone(self) -> "SchemaDefinition":
        """Deep copy; callers mutate the copy, never the original."""
        return self.model_copy(deep=True)

    def index_names(self) -> List[str]:
        return [index.name for index in self.indexes]


# ============================================================================
# PATCHES & MANIFESTS
# ============================================================================

class SchemaOverride(_SchemaModel):
    """
    Package-scoped patch against a base schema.

    Applied by core.schema.override_system in a fixed order:
    add columns, remove columns, add indexes, remove indexes,
    add triggers, remove triggers.
    """

    table_name: str
    package_name: str
    add_columns: Optional[Dict[str, ColumnDefinition]] = None
    remove_columns: Optional[List[str]] = None
    add_indexes: Optional[List[IndexDefinition]] = None
    remove_indexes: Optional[List[str]] = None
    add_triggers: Optional[List[TriggerDefinition]] = None
    remove_triggers: Optional[List[str]] = None

    def delta(self) -> Dict[str, Any]:
        """The patch content without its addressing fields."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"table_name", "package_name"},
        )


class SchemaManifest(_SchemaModel):
    """
    Build-time bundle of schemas emitted for one package.

    Loaded by scripts/deploy_schema.py and handed to the runtime
    schema manager.
    """

    version: str = "1"
    timestamp: int = 0
    package_name: str = "unknown"
    schemas: Dict[str, SchemaDefinition] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)

    @classmethod
    def from_json(cls, text: str) -> "SchemaManifest":
        return cls.model_validate_json(text)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


__all__ = [
    "ColumnDefinition",
    "ForeignKeyReference",
    "IndexDefinition",
    "TriggerDefinition",
    "ForeignKeyDefinition",
    "SchemaDefinition",
    "SchemaOverride",
    "SchemaManifest",
]
