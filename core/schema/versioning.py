# ============================================================================
# SCHEMA VERSIONING
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Content-derived schema versions
# PURPOSE: Deterministic short hashes over semantic schema content
# CREATED: 18 OCT 2026
# ============================================================================
"""
Schema Versioning

A schema version is a short SHA-256 digest of a canonical JSON encoding
of whatever content defines the schema. Identical content always yields
the identical version, so "is this table up to date" is a string compare.

Canonical encoding: sorted keys, compact separators, pydantic models
dumped in JSON mode by alias, enums by value.
"""

import hashlib
import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from core.config import get_defaults


def _canonical(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def canonical_json(content: Any) -> str:
    """Encode content so equal content always produces equal text."""
    return json.dumps(
        _canonical(content),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


def content_hash(content: Any, length: Optional[int] = None) -> str:
    """
    Hash semantic content into a short hex version string.

    Args:
        content: Any JSON-compatible structure, pydantic models allowed
        length: Hex chars to keep (defaults to SchemaDefaults.hash_length)

    Returns:
        Lowercase hex digest prefix
    """
    if length is None:
        length = get_defaults().schema.hash_length
    digest = hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()
    return digest[:length]


__all__ = ["canonical_json", "content_hash"]
