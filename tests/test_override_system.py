# ============================================================================
# SCHEMA OVERRIDE SYSTEM TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Tests - Package-scoped schema patches
# PURPOSE: Verify apply_override ordering, recompute, and versioning
# CREATED: 18 OCT 2026
# ============================================================================
"""
Schema Override System Tests

Run with:
    pytest tests/test_override_system.py -v
"""

import pytest

from core.config import SchemaDefaults
from core.models import (
    ClassMetadata,
    ColumnDefinition,
    FieldDefinition,
    IndexDefinition,
    SchemaOverride,
    TriggerDefinition,
)
from core.models.schema import ForeignKeyReference
from core.schema.override_system import apply_override, create_override, merge_overrides
from core.schema.sql_generator import SchemaGenerator


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def base_schema():
    generator = SchemaGenerator(SchemaDefaults())
    return generator.generate_schema(
        {
            "title": FieldDefinition(type="text", required=True),
            "authorId": FieldDefinition(type="foreignKey", related="authors"),
        },
        ClassMetadata(class_name="Content", base_class="Document", package_name="content"),
    )


def _council_column():
    return ColumnDefinition(
        type="TEXT",
        foreign_key=ForeignKeyReference(table="councils", on_delete="CASCADE", on_update="CASCADE"),
        description="Reference to council this content belongs to",
    )


# ============================================================================
# APPLY OVERRIDE
# ============================================================================

class TestApplyOverride:

    def test_add_column(self, base_schema):
        override = create_override("contents", "praeco", add_columns={"source_url": ColumnDefinition()})
        result = apply_override(base_schema, override)
        assert "source_url" in result.columns
        assert list(result.columns)[-1] == "source_url"

    def test_base_is_not_mutated(self, base_schema):
        before = base_schema.model_dump()
        override = create_override(
            "contents", "praeco",
            add_columns={"source_url": ColumnDefinition()},
            remove_columns=["title"],
            add_indexes=[IndexDefinition(name="idx_contents_source_url", columns=["source_url"])],
        )
        apply_override(base_schema, override)
        assert base_schema.model_dump() == before

    def test_add_column_last_write_wins(self, base_schema):
        override = create_override(
            "contents", "praeco",
            add_columns={"title": ColumnDefinition(type="TEXT", default_value="'untitled'")},
        )
        result = apply_override(base_schema, override)
        assert result.columns["title"].default_value == "'untitled'"
        assert not result.columns["title"].not_null

    def test_remove_missing_column_is_noop(self, base_schema):
        override = create_override("contents", "praeco", remove_columns=["nope"])
        result = apply_override(base_schema, override)
        assert list(result.columns) == list(base_schema.columns)

    def test_removal_wins_over_addition(self, base_schema):
        override = create_override(
            "contents", "praeco",
            add_columns={"x": ColumnDefinition()},
            remove_columns=["x"],
            add_indexes=[IndexDefinition(name="idx_x", columns=["x"])],
            remove_indexes=["idx_x"],
            add_triggers=[TriggerDefinition(name="trg_x", event="INSERT", body="SELECT 1;")],
            remove_triggers=["trg_x"],
        )
        result = apply_override(base_schema, override)
        assert "x" not in result.columns
        assert "idx_x" not in result.index_names()
        assert "trg_x" not in [t.name for t in result.triggers]

    def test_removed_column_keeps_its_index(self, base_schema):
        override = create_override("contents", "praeco", remove_columns=["title"])
        base_schema.indexes.append(IndexDefinition(name="idx_contents_title", columns=["title"]))
        result = apply_override(base_schema, override)
        assert "title" not in result.columns
        assert "idx_contents_title" in result.index_names()

    def test_index_add_and_remove(self, base_schema):
        override = create_override(
            "contents", "praeco",
            add_indexes=[IndexDefinition(name="idx_contents_type_priority", columns=["content_type", "priority_score"])],
            remove_indexes=["idx_contents_updated_at"],
        )
        result = apply_override(base_schema, override)
        names = result.index_names()
        assert names[-1] == "idx_contents_type_priority"
        assert "idx_contents_updated_at" not in names

    def test_trigger_add_and_remove(self, base_schema):
        override = create_override(
            "contents", "praeco",
            add_triggers=[TriggerDefinition(name="trg_contents_audit", timing="AFTER", event="INSERT", body="SELECT 1;")],
            remove_triggers=["trg_contents_updated_at"],
        )
        result = apply_override(base_schema, override)
        assert [t.name for t in result.triggers] == ["trg_contents_audit"]


class TestRecompute:
    """Foreign keys and dependencies follow the resulting columns."""

    def test_added_foreign_key_adds_dependency(self, base_schema):
        override = create_override("contents", "praeco", add_columns={"council_id": _council_column()})
        result = apply_override(base_schema, override)
        assert "councils" in result.dependencies
        assert {fk.column for fk in result.foreign_keys} == {"author_id", "council_id"}

    def test_removed_foreign_key_drops_dependency(self, base_schema):
        assert "authors" in base_schema.dependencies
        override = create_override("contents", "praeco", remove_columns=["author_id"])
        result = apply_override(base_schema, override)
        assert "authors" not in result.dependencies
        assert result.foreign_keys == []

    def test_base_class_dependency_not_carried(self, base_schema):
        assert "documents" in base_schema.dependencies
        result = apply_override(base_schema, create_override("contents", "praeco"))
        assert result.dependencies == ["authors"]


class TestOverrideVersion:

    def test_package_name_replaced(self, base_schema):
        result = apply_override(base_schema, create_override("contents", "praeco"))
        assert result.package_name == "praeco"

    def test_version_changes_and_is_reproducible(self, base_schema):
        override = create_override("contents", "praeco", add_columns={"source_url": ColumnDefinition()})
        a = apply_override(base_schema, override)
        b = apply_override(base_schema, override)
        assert a.version == b.version
        assert a.version != base_schema.version
        assert len(a.version) == 8

    def test_distinct_overrides_distinct_versions(self, base_schema):
        a = apply_override(base_schema, create_override("contents", "praeco", remove_columns=["title"]))
        b = apply_override(base_schema, create_override("contents", "praeco", remove_columns=["author_id"]))
        c = apply_override(base_schema, create_override("contents", "other", remove_columns=["title"]))
        assert len({a.version, b.version, c.version}) == 3


# ============================================================================
# MERGE & CREATE
# ============================================================================

class TestMergeOverrides:

    def test_sequential_composition(self, base_schema):
        first = create_override("contents", "praeco", add_columns={"video_url": ColumnDefinition()})
        second = create_override("contents", "archive", remove_columns=["video_url"])
        result = merge_overrides(base_schema, [first, second])
        assert "video_url" not in result.columns
        assert result.package_name == "archive"

    def test_other_tables_are_skipped(self, base_schema):
        other = create_override("meetings", "praeco", add_columns={"agenda_url": ColumnDefinition()})
        result = merge_overrides(base_schema, [other])
        assert result is base_schema

    def test_matches_manual_fold(self, base_schema):
        first = create_override("contents", "praeco", add_columns={"a": ColumnDefinition()})
        second = create_override("contents", "praeco", add_columns={"b": ColumnDefinition()})
        merged = merge_overrides(base_schema, [first, second])
        manual = apply_override(apply_override(base_schema, first), second)
        assert merged.model_dump() == manual.model_dump()


class TestCreateOverride:

    def test_accepts_camel_case_and_dicts(self):
        override = create_override(
            "contents", "praeco",
            addColumns={"content_type": {"type": "TEXT", "notNull": True, "defaultValue": "'document'"}},
            addIndexes=[{"name": "idx_contents_content_type", "columns": ["content_type"]}],
        )
        assert isinstance(override, SchemaOverride)
        assert override.table_name == "contents"
        assert override.add_columns["content_type"].not_null
        assert override.add_columns["content_type"].default_value == "'document'"
        assert override.add_indexes[0].name == "idx_contents_content_type"
        assert override.remove_columns is None

    def test_delta_excludes_addressing(self):
        override = create_override("contents", "praeco", remove_columns=["title"])
        delta = override.delta()
        assert "tableName" not in delta
        assert "packageName" not in delta
        assert delta["removeColumns"] == ["title"]
