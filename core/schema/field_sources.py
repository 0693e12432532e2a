# ============================================================================
# FIELD SOURCES
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Field metadata inputs for the schema generator
# PURPOSE: One FieldSource -> SchemaDefinition path with two adapters
# CREATED: 18 OCT 2026
# EXPORTS: FieldSource, ScanResultFieldSource, RegistryFieldSource, FieldRegistry
# DEPENDENCIES: pydantic
# ============================================================================
"""
Field Sources

Field metadata reaches the generator from two places:

- ScanResultFieldSource: the JSON document written by the source scanner
  at build time, keyed by class name:

    {
        "Product": {
            "fields": {"name": {"type": "text", "required": true}},
            "extends": "SmartObject",
            "filePath": "packages/products/src/models/Product.ts",
            "tableName": "products"
        }
    }

- RegistryFieldSource: classes registered in-process on a FieldRegistry
  via register(name, fields, config).

Both yield (fields, ClassMetadata) pairs and share one generate path.
Scan results use the definition version strategy; the live registry
hashes the resulting columns.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from core.models.fields import ClassMetadata, FieldDefinition
from core.models.schema import SchemaDefinition
from core.schema.sql_generator import SchemaGenerator, VersionStrategy
from core.schema.versioning import content_hash

logger = logging.getLogger(__name__)

FieldMap = Dict[str, FieldDefinition]
FieldInput = Mapping[str, Union[FieldDefinition, Mapping[str, Any]]]

# content hash -> generated schema, shared by every FieldRegistry
_SCHEMA_CACHE: Dict[str, SchemaDefinition] = {}


def coerce_fields(fields: FieldInput) -> FieldMap:
    """Validate a raw field mapping into FieldDefinitions, keeping order."""
    result: FieldMap = {}
    for name, value in fields.items():
        if isinstance(value, FieldDefinition):
            field_def = value
        else:
            field_def = FieldDefinition.model_validate(dict(value))
        if field_def.name is None:
            field_def = field_def.model_copy(update={"name": name})
        result[name] = field_def
    return result


# ============================================================================
# FIELD SOURCE INTERFACE
# ============================================================================

class FieldSource(ABC):
    """Source of (fields, ClassMetadata) pairs for schema generation."""

    version_strategy: VersionStrategy = VersionStrategy.DEFINITION

    @abstractmethod
    def iter_definitions(self) -> Iterator[Tuple[FieldMap, ClassMetadata]]:
        """Yield one (fields, metadata) pair per class."""

    def generate_schemas(
        self,
        generator: Optional[SchemaGenerator] = None,
    ) -> Dict[str, SchemaDefinition]:
        """
        Generate a schema per class.

        Args:
            generator: Generator to use (default instance if None)

        Returns:
            Dict of class name -> SchemaDefinition
        """
        generator = generator or SchemaGenerator()
        schemas: Dict[str, SchemaDefinition] = {}
        for fields, meta in self.iter_definitions():
            schemas[meta.class_name] = generator.generate_schema(
                fields, meta, version_strategy=self.version_strategy
            )
        logger.debug(f"{type(self).__name__} generated {len(schemas)} schemas")
        return schemas


# ============================================================================
# SCAN RESULT SOURCE
# ============================================================================

class ScanResultFieldSource(FieldSource):
    """Field metadata from a source scanner JSON result."""

    version_strategy = VersionStrategy.DEFINITION

    def __init__(self, scan_result: Mapping[str, Mapping[str, Any]]):
        self.scan_result = scan_result

    @classmethod
    def from_json(cls, text: str) -> "ScanResultFieldSource":
        return cls(json.loads(text))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ScanResultFieldSource":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))

    def iter_definitions(self) -> Iterator[Tuple[FieldMap, ClassMetadata]]:
        for class_name, entry in self.scan_result.items():
            meta = ClassMetadata.model_validate({
                "className": entry.get("className", class_name),
                "tableName": entry.get("tableName"),
                "extends": entry.get("extends"),
                "packageName": entry.get("packageName"),
                "filePath": entry.get("filePath"),
                "slugIdentity": entry.get("slugIdentity", True),
            })
            yield coerce_fields(entry.get("fields", {})), meta


# ============================================================================
# FIELD REGISTRY
# ============================================================================

class FieldRegistry:
    """
    In-process registry of classes and their field maps.

    Registration is explicit: register(name, fields, config). Registering a
    name twice keeps the first registration. Generated schemas are cached
    process-wide by a hash of fields, metadata and generator defaults, so
    identical content registered on another registry with the same
    defaults reuses the same generator output.
    """

    def __init__(self, generator: Optional[SchemaGenerator] = None):
        self.generator = generator or SchemaGenerator()
        self._classes: Dict[str, Tuple[FieldMap, ClassMetadata]] = {}
        self._schemas: Dict[str, SchemaDefinition] = {}

    def register(
        self,
        name: str,
        fields: FieldInput,
        config: Optional[Mapping[str, Any]] = None,
    ) -> SchemaDefinition:
        """
        Register a class and generate its schema.

        Args:
            name: Class name
            fields: Field name -> FieldDefinition (or raw dict)
            config: Optional class config (tableName, extends, packageName,
                filePath, slugIdentity)

        Returns:
            The class's SchemaDefinition
        """
        if name in self._classes:
            logger.debug(f"Class {name} already registered, keeping first registration")
            return self._schemas[name]

        field_map = coerce_fields(fields)
        meta = ClassMetadata.model_validate({**(config or {}), "className": name})

        cache_key = content_hash(
            {
                "fields": {n: f.version_payload() for n, f in field_map.items()},
                "meta": meta,
                "defaults": asdict(self.generator.defaults),
            },
            length=64,
        )
        schema = _SCHEMA_CACHE.get(cache_key)
        if schema is None:
            schema = self.generator.generate_schema(
                field_map, meta, version_strategy=VersionStrategy.COLUMNS
            )
            _SCHEMA_CACHE[cache_key] = schema

        self._classes[name] = (field_map, meta)
        self._schemas[name] = schema

        logger.debug(
            f"Registered {name} -> {schema.table_name} "
            f"({len(schema.columns)} columns, version {schema.version})"
        )
        return schema

    def get_schema(self, name: str) -> Optional[SchemaDefinition]:
        return self._schemas.get(name)

    def get_fields(self, name: str) -> Optional[FieldMap]:
        entry = self._classes.get(name)
        return entry[0] if entry else None

    def get_table_name(self, name: str) -> Optional[str]:
        schema = self._schemas.get(name)
        return schema.table_name if schema else None

    def schemas(self) -> Dict[str, SchemaDefinition]:
        """All registered schemas keyed by class name."""
        return dict(self._schemas)

    def list_classes(self) -> List[str]:
        return list(self._classes)

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    def clear(self) -> None:
        """Forget every registration. Primarily for testing."""
        self._classes.clear()
        self._schemas.clear()

    def items(self) -> Iterator[Tuple[str, Tuple[FieldMap, ClassMetadata]]]:
        return iter(self._classes.items())


def clear_schema_cache() -> None:
    """Drop cached generator output (for testing)."""
    _SCHEMA_CACHE.clear()


class RegistryFieldSource(FieldSource):
    """Field metadata from a FieldRegistry."""

    version_strategy = VersionStrategy.COLUMNS

    def __init__(self, registry: FieldRegistry):
        self.registry = registry

    def iter_definitions(self) -> Iterator[Tuple[FieldMap, ClassMetadata]]:
        for _, (fields, meta) in self.registry.items():
            yield fields, meta


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "FieldSource",
    "ScanResultFieldSource",
    "RegistryFieldSource",
    "FieldRegistry",
    "coerce_fields",
    "clear_schema_cache",
]
