# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for schema generation, runtime manager, database
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for schema generation and runtime coordination.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SchemaDefaults:
    """
    Defaults for schema generation.

    Controls dialect spellings, injected columns, and version hashing.
    """
    # Dialect spellings for the two types engines disagree on
    datetime_type: str = "DATETIME"
    json_type: str = "JSON"

    # Injected timestamp columns
    timestamp_default: str = "CURRENT_TIMESTAMP"

    # Version hash: hex chars of SHA-256 kept
    hash_length: int = 8

    # Base classes that do not own a table of their own
    root_base_classes: Tuple[str, ...] = ("SmartObject", "SmartCollection", "BaseModel", "object")

    # Referential actions for generated foreign keys
    default_on_delete: str = "CASCADE"
    default_on_update: str = "CASCADE"

    @classmethod
    def from_env(cls) -> "SchemaDefaults":
        """Create from environment variables."""
        return cls(
            datetime_type=os.getenv("SCHEMA_DATETIME_TYPE", "DATETIME"),
            json_type=os.getenv("SCHEMA_JSON_TYPE", "JSON"),
            timestamp_default=os.getenv("SCHEMA_TIMESTAMP_DEFAULT", "CURRENT_TIMESTAMP"),
            hash_length=int(os.getenv("SCHEMA_HASH_LENGTH", 8)),
        )


@dataclass(frozen=True)
class ManagerDefaults:
    """
    Defaults for the runtime schema manager.
    """
    # Emit CREATE TRIGGER after table creation (adapter must declare support)
    create_triggers: bool = False

    # Log added columns/indexes after additive evolution
    log_evolution: bool = True

    @classmethod
    def from_env(cls) -> "ManagerDefaults":
        """Create from environment variables."""
        return cls(
            create_triggers=_env_bool("SCHEMA_CREATE_TRIGGERS", False),
            log_evolution=_env_bool("SCHEMA_LOG_EVOLUTION", True),
        )


@dataclass(frozen=True)
class DatabaseDefaults:
    """
    Defaults for the PostgreSQL adapter.
    """
    schema_name: str = "public"
    pool_min_size: int = 1
    pool_max_size: int = 4
    sslmode: str = "require"

    @classmethod
    def from_env(cls) -> "DatabaseDefaults":
        """Create from environment variables."""
        return cls(
            schema_name=os.getenv("POSTGRES_SCHEMA", "public"),
            pool_min_size=int(os.getenv("POSTGRES_POOL_MIN", 1)),
            pool_max_size=int(os.getenv("POSTGRES_POOL_MAX", 4)),
            sslmode=os.getenv("POSTGRES_SSLMODE", "require"),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    schema: SchemaDefaults = field(default_factory=SchemaDefaults)
    manager: ManagerDefaults = field(default_factory=ManagerDefaults)
    database: DatabaseDefaults = field(default_factory=DatabaseDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            schema=SchemaDefaults.from_env(),
            manager=ManagerDefaults.from_env(),
            database=DatabaseDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "SchemaDefaults",
    "ManagerDefaults",
    "DatabaseDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
