"""Create the workforce_hub tables; with ``--seed`` also load demo data and users."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce_hub.workforce_hub.database.bootstrap import (
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)

DATABASE_DIR = REPO_ROOT / "database"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="also apply seed.sql and create the demo accounts")
    args = parser.parse_args()

    load_dotenv(override=False)
    db_config = dict(importlib.import_module(get_settings_module()).DB_CONFIG)
    target = f"{db_config.get('database')} on {db_config.get('host')}:{db_config.get('port', 3306)}"

    apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
    print(f"OK: schema applied to {target} ({len(list_tables(db_config))} tables)")

    if args.seed:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        print(f"OK: demo data seeded into {target}")


if __name__ == "__main__":
    main()
