# ============================================================================
# VERSION - TABLEWRIGHT
# ============================================================================
# EPOCH: 1 - SCHEMA COORDINATION
# ============================================================================
"""
Version information for Tablewright.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch
# Criteria for 0.1 - manifest deploys through the runtime manager
__version__ = "0.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-18"

EPOCH = 1
CODENAME = "Schema Coordination"
