#!/usr/bin/env python
# ============================================================================
# SCHEMA DEPLOYMENT SCRIPT
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# PURPOSE: Render or apply a schema manifest / scan result to PostgreSQL
# USAGE:
#   python scripts/deploy_schema.py --manifest schemas.json --dry-run
#   python scripts/deploy_schema.py --manifest schemas.json
#   python scripts/deploy_schema.py --scan scan.json --override overrides.json
# ============================================================================

import sys
import os
import json
import asyncio
import argparse
from typing import Dict, List

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from __version__ import __version__
from core.contracts import CircularDependencyError
from core.logging import ComponentType, configure_logging, get_logger
from core.models import SchemaDefinition, SchemaManifest, SchemaOverride
from core.schema import ScanResultFieldSource, SchemaGenerator, merge_overrides
from infrastructure import AsyncPostgreSQLSchemaDatabase, RuntimeSchemaManager, postgres_schema_defaults

logger = get_logger("scripts.deploy_schema", ComponentType.CLI)


def load_schemas(args) -> Dict[str, SchemaDefinition]:
    """Schemas from --manifest or --scan, with --override patches applied."""
    if args.manifest:
        with open(args.manifest, encoding="utf-8") as f:
            schemas = dict(SchemaManifest.from_json(f.read()).schemas)
        for name, schema in schemas.items():
            generic = [c for c, col in schema.columns.items() if col.type.upper() == "DATETIME"]
            if generic:
                logger.warning(f"{name}: columns {generic} use DATETIME, which PostgreSQL rejects")
    else:
        generator = SchemaGenerator(postgres_schema_defaults())
        schemas = ScanResultFieldSource.from_file(args.scan).generate_schemas(generator)

    if args.override:
        with open(args.override, encoding="utf-8") as f:
            raw = json.load(f)
        overrides: List[SchemaOverride] = [
            SchemaOverride.model_validate(entry)
            for entry in (raw if isinstance(raw, list) else [raw])
        ]
        schemas = {
            name: merge_overrides(schema, overrides)
            for name, schema in schemas.items()
        }

    return schemas


def print_ddl(schemas: Dict[str, SchemaDefinition]) -> None:
    generator = SchemaGenerator()
    order = RuntimeSchemaManager().resolve_initialization_order(schemas)
    for name in order:
        schema = schemas[name]
        print(f"-- {name} ({schema.table_name}) version {schema.version}")
        print(generator.generate_sql(schema))
        print()


async def deploy(schemas: Dict[str, SchemaDefinition], args) -> int:
    manager = RuntimeSchemaManager()
    async with AsyncPostgreSQLSchemaDatabase(
        connection_string=args.connection,
        schema_name=args.schema,
    ) as db:
        result = await manager.initialize_schemas(db, schemas, force=args.force)

    print("\n[RESULTS]\n")
    for name in result.initialized:
        print(f"✅ {name}: initialized")
    for name in result.skipped:
        print(f"⏭️ {name}: skipped")
    for err in result.errors:
        print(f"❌ {err['schema']}: {err['error']}")

    print("\n" + "=" * 70)
    print(f"Completed in {result.execution_time:.1f} ms")
    print("=" * 70)
    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Render or apply schema definitions to PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/deploy_schema.py --manifest schemas.json --dry-run
  python scripts/deploy_schema.py --manifest schemas.json
  python scripts/deploy_schema.py --scan scan.json --force

Environment Variables:
  DATABASE_URL          Full PostgreSQL connection string
  POSTGRES_HOST         Database host (default: localhost)
  POSTGRES_DB           Database name (default: postgres)
  POSTGRES_USER         Database user (default: postgres)
  POSTGRES_PASSWORD     Database password
  POSTGRES_PORT         Database port (default: 5432)
  POSTGRES_SSLMODE      SSL mode (default: require)
  POSTGRES_SCHEMA       Target schema (default: public)
  SCHEMA_DATETIME_TYPE  Spelling of DATETIME columns (e.g. TIMESTAMPTZ)
  LOG_FORMAT            Set to "json" for structured logs
        """
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--manifest",
        type=str,
        help="Schema manifest JSON (tableName/columns/indexes per schema)"
    )
    source.add_argument(
        "--scan",
        type=str,
        help="Source scanner JSON (class -> fields, extends, filePath)"
    )
    parser.add_argument(
        "--override",
        type=str,
        help="JSON file with one schema override or a list of them"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print DDL without executing"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Drop and recreate existing tables (destructive)"
    )
    parser.add_argument(
        "--connection",
        type=str,
        help="PostgreSQL connection string (overrides environment)"
    )
    parser.add_argument(
        "--schema",
        type=str,
        help="Target PostgreSQL schema (overrides POSTGRES_SCHEMA)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    args = parser.parse_args()

    configure_logging(level="DEBUG" if args.verbose else "INFO")

    print("=" * 70)
    print(f"TABLEWRIGHT v{__version__} - Schema Deployment")
    print("=" * 70)

    schemas = load_schemas(args)
    logger.info(f"Loaded {len(schemas)} schemas")

    if args.dry_run:
        print("\nMode: DRY RUN\n")
        try:
            print_ddl(schemas)
        except CircularDependencyError as e:
            print(f"❌ {e}")
            sys.exit(1)
        return

    print(f"\nMode: {'FORCE' if args.force else 'EXECUTE'}\n")
    sys.exit(asyncio.run(deploy(schemas, args)))


if __name__ == "__main__":
    main()
