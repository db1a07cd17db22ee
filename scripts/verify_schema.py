#!/usr/bin/env python3
"""
Schema Contract Check

Compares the live database against the tables and columns the dashboard
reads (perfdash.models). Run once after the upstream system changes its
schema; the API itself never probes for columns.

Usage:
    python scripts/verify_schema.py
Exit code is 1 when any table or column is missing.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect

import perfdash.models  # noqa: F401  (registers the models on Base)
from perfdash.models.base import Base, engine


def find_missing():
    """Return {table: [missing columns]}; a missing table maps to None"""
    inspector = inspect(engine)
    missing = {}
    for table_name, table in Base.metadata.tables.items():
        if not inspector.has_table(table_name):
            missing[table_name] = None
            continue
        existing = {c["name"] for c in inspector.get_columns(table_name)}
        absent = [col.name for col in table.columns if col.name not in existing]
        if absent:
            missing[table_name] = absent
    return missing


def main():
    missing = find_missing()
    if not missing:
        print(f"Schema OK: {len(Base.metadata.tables)} tables match the contract.")
        return 0

    for table_name, columns in sorted(missing.items()):
        if columns is None:
            print(f"MISSING TABLE  {table_name}")
        else:
            print(f"MISSING COLUMNS {table_name}: {', '.join(columns)}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
