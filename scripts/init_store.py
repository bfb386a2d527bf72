#!/usr/bin/env python3
"""
scripts/init_store.py — Store setup CLI
========================================

Usage:
  python scripts/init_store.py init
  python scripts/init_store.py seed-profile --name "Jeanne Dupont" [--title "Architecte"] [--email ...]
  python scripts/init_store.py list [--table projects]

Commands:
  init          Create the local SQLite schema (no-op for a hosted store).
  seed-profile  Insert the single profile row if none exists yet. The admin
                dashboard only ever updates that row, so a fresh store needs this.
  list          Print row counts per table, or the rows of one table.

The store is chosen from config.yaml / STORE_URL exactly like the app does.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from config_loader import load_config  # noqa: E402
from db.client import StoreError, create_store  # noqa: E402
from db.models import init_db  # noqa: E402
from db.records import TABLES  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
log = logging.getLogger(__name__)


def cmd_init(args, config):
    if config["store"].get("url"):
        log.info("Hosted store configured, schema is managed there. Nothing to do.")
        return
    path = Path(config["store"]["sqlite_path"])
    init_db(path)
    log.info(f"SQLite schema ready at {path}")


def cmd_seed_profile(args, store):
    existing = store.select("profiles", limit=1)
    if existing:
        log.info(f"Profile already exists ({existing[0]['id']}), leaving it untouched")
        return
    row = {"name": args.name, "logo_type": "text", "logo_icon": "User"}
    for field in ("title", "email", "phone", "location"):
        value = getattr(args, field)
        if value:
            row[field] = value
    created = store.insert("profiles", row)
    log.info(f"Created profile {created['id']} for {args.name}")


def cmd_list(args, store):
    if args.table:
        for row in store.select(args.table):
            print(json.dumps(row, ensure_ascii=False, default=str))
        return
    for table in TABLES:
        print(f"{table:<20} {len(store.select(table)):>5}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="init_store",
        description="Prepare and inspect the portfolio store.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the local SQLite schema")

    p_seed = sub.add_parser("seed-profile", help="Insert the profile row if missing")
    p_seed.add_argument("--name", required=True, metavar="NAME", help="Display name")
    p_seed.add_argument("--title", metavar="TITLE", help="Professional title")
    p_seed.add_argument("--email", metavar="EMAIL")
    p_seed.add_argument("--phone", metavar="PHONE")
    p_seed.add_argument("--location", metavar="PLACE")

    p_list = sub.add_parser("list", help="Show row counts or the rows of one table")
    p_list.add_argument("--table", choices=sorted(TABLES), help="Dump this table as JSON lines")

    return p


def main():
    parser = build_parser()
    args = parser.parse_args()
    config = load_config(root=ROOT)

    if args.command == "init":
        cmd_init(args, config)
        return

    store = create_store(config)
    try:
        dispatch = {
            "seed-profile": cmd_seed_profile,
            "list": cmd_list,
        }
        dispatch[args.command](args, store)
    except StoreError as e:
        sys.exit(f"Store error: {e}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
