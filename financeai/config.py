from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "data_sources": {
        "demo": "financeai.sources.demo.DemoSource",
        "nessie": "financeai.sources.nessie.NessieSource",
    },
    "source": "demo",
    "source_options": {
        "demo": {"path": None},
        "nessie": {"base_url": "http://api.nessieisreal.com", "timeout": 30},
    },
    "budgets_file": "budgets.yaml",
    "chat": {
        "history_limit": 10,
    },
    "dashboard": {
        "recent_transactions": 10,
        "daily_window": 7,
    },
}

CONFIG_ENV = "FINANCEAI_CONFIG"


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged or merged[key] is None:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def _apply_env(config: Dict[str, object]) -> Dict[str, object]:
    source = os.environ.get("FINANCEAI_SOURCE")
    if source:
        config["source"] = source
    api_key = os.environ.get("NESSIE_API_KEY")
    if api_key:
        options = config.setdefault("source_options", {})
        options["nessie"] = dict(options.get("nessie") or {}, api_key=api_key)
    return config


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Load a YAML config, filling missing keys from ``DEFAULT_CONFIG``.

    Without an explicit path, ``$FINANCEAI_CONFIG`` is used when set. A
    missing file yields the defaults.
    """
    target = path or os.environ.get(CONFIG_ENV)
    data: Dict[str, object] = {}
    if target and Path(target).exists():
        with Path(target).open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    return _apply_env(_merge_defaults(data, DEFAULT_CONFIG))
