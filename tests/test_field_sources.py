# ============================================================================
# FIELD SOURCE TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Tests - Scan results and the in-process registry
# PURPOSE: Verify both field sources feed the generator the same way
# CREATED: 18 OCT 2026
# ============================================================================
"""
Field Source Tests

Run with:
    pytest tests/test_field_sources.py -v
"""

import json

import pytest

from core.config import SchemaDefaults
from core.models import ClassMetadata, FieldDefinition
from core.schema.field_sources import (
    FieldRegistry,
    RegistryFieldSource,
    ScanResultFieldSource,
    clear_schema_cache,
    coerce_fields,
)
from core.schema.sql_generator import SchemaGenerator, VersionStrategy


SCAN = {
    "Product": {
        "fields": {
            "name": {"type": "text", "required": True},
            "price": {"type": "decimal"},
            "categoryId": {"type": "foreignKey", "related": "categories"},
        },
        "extends": "SmartObject",
        "filePath": "packages/catalog/src/models/Product.ts",
    },
    "Category": {
        "fields": {"title": {"type": "text"}},
        "tableName": "product_categories",
    },
}


@pytest.fixture
def generator():
    return SchemaGenerator(SchemaDefaults())


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_schema_cache()
    yield
    clear_schema_cache()


# ============================================================================
# SCAN RESULTS
# ============================================================================

class TestScanResultFieldSource:

    def test_keyed_by_class_name(self, generator):
        schemas = ScanResultFieldSource(SCAN).generate_schemas(generator)
        assert set(schemas) == {"Product", "Category"}
        assert schemas["Product"].table_name == "products"
        assert schemas["Category"].table_name == "product_categories"

    def test_package_name_from_file_path(self, generator):
        schemas = ScanResultFieldSource(SCAN).generate_schemas(generator)
        assert schemas["Product"].package_name == "catalog"
        assert schemas["Category"].package_name == "unknown"

    def test_foreign_key_dependency(self, generator):
        schemas = ScanResultFieldSource(SCAN).generate_schemas(generator)
        assert schemas["Product"].dependencies == ["categories"]

    def test_version_matches_direct_generation(self, generator):
        schemas = ScanResultFieldSource(SCAN).generate_schemas(generator)
        direct = generator.generate_schema(
            coerce_fields(SCAN["Product"]["fields"]),
            ClassMetadata(
                class_name="Product",
                base_class="SmartObject",
                file_path="packages/catalog/src/models/Product.ts",
            ),
            version_strategy=VersionStrategy.DEFINITION,
        )
        assert schemas["Product"].version == direct.version

    def test_from_json_and_file(self, generator, tmp_path):
        path = tmp_path / "scan.json"
        path.write_text(json.dumps(SCAN), encoding="utf-8")

        from_file = ScanResultFieldSource.from_file(path).generate_schemas(generator)
        from_text = ScanResultFieldSource.from_json(json.dumps(SCAN)).generate_schemas(generator)

        assert from_file["Product"].version == from_text["Product"].version

    def test_slug_identity_opt_out(self, generator):
        scan = {"Log": {"fields": {"line": {"type": "text"}}, "slugIdentity": False}}
        schema = ScanResultFieldSource(scan).generate_schemas(generator)["Log"]
        assert "slug" not in schema.columns
        assert "context" not in schema.columns


class TestCoerceFields:

    def test_names_filled_in(self):
        fields = coerce_fields({"title": {"type": "text"}})
        assert fields["title"].name == "title"

    def test_definitions_pass_through(self):
        field_def = FieldDefinition(type="integer", name="count")
        assert coerce_fields({"count": field_def})["count"] is field_def

    def test_order_preserved(self):
        fields = coerce_fields({"b": {"type": "text"}, "a": {"type": "text"}})
        assert list(fields) == ["b", "a"]


# ============================================================================
# FIELD REGISTRY
# ============================================================================

class TestFieldRegistry:

    def test_register_generates_schema(self, generator):
        registry = FieldRegistry(generator)
        schema = registry.register("Product", {"name": {"type": "text"}})

        assert schema.table_name == "products"
        assert "name" in schema.columns
        assert registry.get_schema("Product") is schema
        assert registry.get_table_name("Product") == "products"
        assert "Product" in registry
        assert len(registry) == 1

    def test_config_keys_are_camel_case(self, generator):
        registry = FieldRegistry(generator)
        schema = registry.register(
            "Meeting",
            {"title": {"type": "text"}},
            {"tableName": "council_meetings", "packageName": "praeco", "slugIdentity": False},
        )
        assert schema.table_name == "council_meetings"
        assert schema.package_name == "praeco"
        assert "slug" not in schema.columns

    def test_duplicate_keeps_first(self, generator):
        registry = FieldRegistry(generator)
        first = registry.register("Product", {"name": {"type": "text"}})
        second = registry.register("Product", {"sku": {"type": "text"}})

        assert second is first
        assert "sku" not in registry.get_schema("Product").columns
        assert list(registry.get_fields("Product")) == ["name"]

    def test_cache_shared_across_registries(self, generator):
        a = FieldRegistry(generator).register("Product", {"name": {"type": "text"}})
        b = FieldRegistry(generator).register("Product", {"name": {"type": "text"}})
        assert a is b

    def test_cache_distinguishes_defaults(self, generator):
        a = FieldRegistry(generator).register("Product", {"note": {"type": "text"}})
        b = FieldRegistry(generator).register("Product", {"note": {"type": "text", "default": None}})
        assert a is not b

    def test_cache_distinguishes_dialect(self):
        sqlite = FieldRegistry(SchemaGenerator(SchemaDefaults()))
        postgres = FieldRegistry(SchemaGenerator(SchemaDefaults(datetime_type="TIMESTAMPTZ")))

        a = sqlite.register("Event", {"at": {"type": "datetime"}})
        b = postgres.register("Event", {"at": {"type": "datetime"}})

        assert a.columns["at"].type == "DATETIME"
        assert b.columns["at"].type == "TIMESTAMPTZ"

        default_json = FieldRegistry(SchemaGenerator(SchemaDefaults())).register(
            "Doc", {"meta": {"type": "json"}}
        )
        jsonb = FieldRegistry(SchemaGenerator(SchemaDefaults(json_type="JSONB"))).register(
            "Doc", {"meta": {"type": "json"}}
        )
        assert default_json.columns["meta"].type == "JSON"
        assert jsonb.columns["meta"].type == "JSONB"

    def test_cache_distinguishes_every_default(self):
        base = FieldRegistry(SchemaGenerator(SchemaDefaults())).register(
            "Order", {"customer": {"type": "foreignKey", "related": "customers"}}
        )
        now = FieldRegistry(SchemaGenerator(SchemaDefaults(timestamp_default="now()"))).register(
            "Order", {"customer": {"type": "foreignKey", "related": "customers"}}
        )
        restrict = FieldRegistry(SchemaGenerator(SchemaDefaults(default_on_delete="RESTRICT"))).register(
            "Order", {"customer": {"type": "foreignKey", "related": "customers"}}
        )
        short = FieldRegistry(SchemaGenerator(SchemaDefaults(hash_length=4))).register(
            "Order", {"customer": {"type": "foreignKey", "related": "customers"}}
        )

        assert base.columns["created_at"].default_value == "CURRENT_TIMESTAMP"
        assert now.columns["created_at"].default_value == "now()"
        assert restrict.columns["customer"].foreign_key.on_delete.value == "RESTRICT"
        assert len(base.version) == 8
        assert len(short.version) == 4

    def test_clear(self, generator):
        registry = FieldRegistry(generator)
        registry.register("Product", {})
        registry.clear()
        assert len(registry) == 0
        assert registry.get_schema("Product") is None
        assert registry.list_classes() == []


class TestRegistryFieldSource:

    def test_generates_registered_classes(self, generator):
        registry = FieldRegistry(generator)
        registry.register("Product", {"name": {"type": "text"}})
        registry.register("Category", {"title": {"type": "text"}})

        schemas = RegistryFieldSource(registry).generate_schemas(generator)

        assert list(schemas) == ["Product", "Category"]
        assert schemas["Product"].version == registry.get_schema("Product").version

    def test_column_strategy_version(self, generator):
        registry = FieldRegistry(generator)
        registered = registry.register("Product", {"name": {"type": "text"}})
        scanned = ScanResultFieldSource(
            {"Product": {"fields": {"name": {"type": "text"}}}}
        ).generate_schemas(generator)["Product"]

        assert registered.columns == scanned.columns
        assert registered.version != scanned.version
