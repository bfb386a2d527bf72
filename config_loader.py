"""
config_loader.py — Unified configuration loader
================================================
Reads config.yaml (site, store and storage settings) from the project root
and applies the two externally supplied store values from the environment
(STORE_URL, STORE_KEY), so all code can call load_config() and get the
combined result transparently.

Precedence: environment variables (including a local .env file) overwrite
config.yaml values; config.yaml overwrites the built-in defaults.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

DEFAULTS: dict = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "store": {"sqlite_path": "db/portfolio.db", "timeout": 10},
    "storage": {"bucket": "portfolio-images", "local_dir": "media", "cache_control": 3600},
    "security": {"cors_origins": ["*"]},
    "contact": {"simulated_delay_seconds": 2.0},
}


def load_config(root: Path | str | None = None) -> dict:
    """
    Load config.yaml and merge it over DEFAULTS, then apply env overrides.

    Args:
        root: Project root directory. Defaults to the directory containing
              this file (i.e. the project root).

    Returns:
        Merged configuration dict, one sub-dict per section.
    """
    if root is None:
        root = Path(__file__).parent
    root = Path(root)

    load_dotenv(root / ".env")

    merged: dict = {section: dict(values) for section, values in DEFAULTS.items()}
    path = root / "config.yaml"
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        for section, values in data.items():
            if isinstance(values, dict):
                merged.setdefault(section, {}).update(values)
            else:
                merged[section] = values

    store = merged.setdefault("store", {})
    if os.environ.get("STORE_URL"):
        store["url"] = os.environ["STORE_URL"]
    if os.environ.get("STORE_KEY"):
        store["key"] = os.environ["STORE_KEY"]

    # Relative paths are resolved against the project root
    for section, key in (("store", "sqlite_path"), ("storage", "local_dir")):
        value = merged.get(section, {}).get(key)
        if value and not Path(value).is_absolute():
            merged[section][key] = str(root / value)

    return merged
