# ============================================================================
# FIELD METADATA MODELS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core model - Per-class field metadata
# PURPOSE: Describe the fields of one registered class (schema generator input)
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: FieldDefinition, ClassMetadata
# DEPENDENCIES: pydantic
# ============================================================================
"""
Field Metadata Models

A FieldDefinition describes one attribute of a registered class. The
generator turns an ordered name -> FieldDefinition mapping plus the
class's ClassMetadata into a SchemaDefinition.

Both models accept the camelCase keys written by the source scanner
(`primaryKey`, `onDelete`, `filePath`) as well as snake_case names.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.contracts import FieldType, ReferentialAction


class FieldDefinition(BaseModel):
    """
    One field of a registered class.

    `default` distinguishes "not given" from an explicit None: an explicit
    None renders as DEFAULT NULL, an absent default renders nothing.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    type: Union[FieldType, str] = Field(
        default=FieldType.TEXT,
        union_mode="left_to_right",
        description="Field type; unknown strings are kept and map to TEXT",
    )
    required: bool = False
    default: Any = None
    unique: bool = False
    primary_key: bool = False
    description: Optional[str] = None
    related: Optional[str] = Field(
        default=None,
        description="Relation target: 'table', 'table.column' or a class name",
    )
    on_delete: Optional[ReferentialAction] = None

    @field_validator("on_delete", mode="before")
    @classmethod
    def _parse_on_delete(cls, value: Any) -> Optional[ReferentialAction]:
        # scanner spellings: 'cascade', 'restrict', 'set_null'; unknown -> generator default
        return ReferentialAction.parse(value)

    @property
    def has_default(self) -> bool:
        """True when a default was supplied, including an explicit None."""
        return "default" in self.model_fields_set

    @property
    def field_type(self) -> Optional[FieldType]:
        """The known FieldType, or None for unmapped type strings."""
        return self.type if isinstance(self.type, FieldType) else None

    def version_payload(self) -> Dict[str, Any]:
        """Semantic content used for version hashing."""
        payload = self.model_dump(mode="json", by_alias=True)
        if not self.has_default:
            payload.pop("default", None)
        return payload


class ClassMetadata(BaseModel):
    """Class-level metadata accompanying a field map."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    class_name: str
    table_name: Optional[str] = None
    base_class: Optional[str] = Field(default=None, alias="extends")
    package_name: Optional[str] = None
    file_path: Optional[str] = None
    slug_identity: bool = Field(
        default=True,
        description="Entity is addressed by (slug, context) in addition to id",
    )


__all__ = ["FieldDefinition", "ClassMetadata"]
