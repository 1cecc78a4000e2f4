"""
Vendored JSON schemas for sink and column configuration mappings.

The schemas ship inside the package so configuration can be validated
without network access.
"""

import json
from pathlib import Path

SCHEMA_DIR = Path(__file__).parent
SCHEMA_NAMES = ("sink_options", "column_options")


def get_schema_path(name: str) -> Path:
    """Return the path to a vendored configuration schema."""
    if name not in SCHEMA_NAMES:
        raise KeyError(f"Unknown configuration schema: {name!r}")
    return SCHEMA_DIR / f"{name}.schema.json"


def load_schema(name: str) -> dict:
    """Load and return a configuration schema as a dictionary."""
    with open(get_schema_path(name), encoding="utf-8") as f:
        return json.load(f)
