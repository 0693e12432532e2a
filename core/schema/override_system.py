# ============================================================================
# SCHEMA OVERRIDE SYSTEM
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Package-scoped schema patches
# PURPOSE: Apply additive/subtractive overrides to base schemas
# CREATED: 18 OCT 2026
# EXPORTS: apply_override, merge_overrides, create_override
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Override System

Lets a package extend (or trim) a schema owned by another package without
editing it. An override is applied to a deep copy of the base schema in a
fixed order:

    1. add columns      (merge; last write wins)
    2. remove columns
    3. add indexes
    4. remove indexes   (by name)
    5. add triggers
    6. remove triggers  (by name)

A name listed in both an add and a remove list of the same override is
therefore removed.

Foreign keys and dependencies are recomputed from the resulting columns.
Only foreign-key targets count, so a dependency the base schema inherited
from its base class does not survive an override.

Removing a column leaves indexes that reference it in place; list those
indexes in remove_indexes as well.

Usage:
    override = create_override(
        "contents", "praeco",
        add_columns={"source_url": {"type": "TEXT"}},
        add_indexes=[{"name": "idx_contents_source_url", "columns": ["source_url"]}],
    )
    schema = apply_override(base_schema, override)
"""

import logging
from typing import Any, Iterable, List

from core.models.schema import SchemaDefinition, SchemaOverride
from core.schema.sql_generator import extract_foreign_keys
from core.schema.versioning import content_hash

logger = logging.getLogger(__name__)


def generate_override_version(base: SchemaDefinition, override: SchemaOverride) -> str:
    """Version over {base version, override delta, package name}."""
    return content_hash({
        "baseVersion": base.version,
        "override": override.delta(),
        "packageName": override.package_name,
    })


def apply_override(base: SchemaDefinition, override: SchemaOverride) -> SchemaDefinition:
    """
    Apply one override to a base schema.

    Args:
        base: Schema to extend (never mutated)
        override: Patch to apply

    Returns:
        New SchemaDefinition with the override's package name and a new version
    """
    schema = base.clone()

    if override.add_columns:
        for name, column in override.add_columns.items():
            schema.columns[name] = column.model_copy(deep=True)

    if override.remove_columns:
        for name in override.remove_columns:
            schema.columns.pop(name, None)

    if override.add_indexes:
        schema.indexes.extend(index.model_copy(deep=True) for index in override.add_indexes)

    if override.remove_indexes:
        removed = set(override.remove_indexes)
        schema.indexes = [index for index in schema.indexes if index.name not in removed]

    if override.add_triggers:
        schema.triggers.extend(trigger.model_copy(deep=True) for trigger in override.add_triggers)

    if override.remove_triggers:
        removed = set(override.remove_triggers)
        schema.triggers = [trigger for trigger in schema.triggers if trigger.name not in removed]

    schema.foreign_keys = extract_foreign_keys(schema.columns)
    schema.dependencies = _foreign_key_dependencies(schema)
    schema.package_name = override.package_name
    schema.version = generate_override_version(base, override)

    logger.debug(
        f"Applied override from {override.package_name} to {base.table_name}: "
        f"version {base.version} -> {schema.version}"
    )
    return schema


def merge_overrides(base: SchemaDefinition, overrides: Iterable[SchemaOverride]) -> SchemaDefinition:
    """
    Apply overrides in order, skipping those addressed to other tables.
    """
    current = base
    for override in overrides:
        if override.table_name == base.table_name:
            current = apply_override(current, override)
    return current


def create_override(table_name: str, package_name: str, **extensions: Any) -> SchemaOverride:
    """
    Build a SchemaOverride.

    Args:
        table_name: Table the override targets
        package_name: Package contributing the override
        **extensions: add_columns, remove_columns, add_indexes,
            remove_indexes, add_triggers, remove_triggers (snake_case or
            camelCase keys; nested values may be dicts or models)

    Returns:
        Validated SchemaOverride
    """
    return SchemaOverride.model_validate({
        **extensions,
        "tableName": table_name,
        "packageName": package_name,
    })


def _foreign_key_dependencies(schema: SchemaDefinition) -> List[str]:
    dependencies: List[str] = []
    for fk in schema.foreign_keys:
        if fk.references_table not in dependencies and fk.references_table != schema.table_name:
            dependencies.append(fk.references_table)
    return dependencies


__all__ = [
    "apply_override",
    "merge_overrides",
    "create_override",
    "generate_override_version",
]
