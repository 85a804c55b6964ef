from __future__ import annotations

from pathlib import Path
from typing import Dict

import yaml

from financeai.core.reconciler import BudgetLimits


def _read(path: Path) -> Dict[str, Dict[str, float]]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Budget file must map customer ids to limits: {path}")
    return data


def load_limits(path: str | Path, customer_id: str) -> BudgetLimits:
    """Return the stored limits for ``customer_id``; empty when none saved."""
    data = _read(Path(path))
    return BudgetLimits.from_mapping(data.get(customer_id))


def save_limits(path: str | Path, customer_id: str, limits: BudgetLimits) -> None:
    """Replace every stored limit for ``customer_id`` with ``limits``."""
    target = Path(path)
    data = _read(target)
    data[customer_id] = limits.as_dict()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(data, fp, sort_keys=False)


def clear_limits(path: str | Path, customer_id: str) -> None:
    target = Path(path)
    data = _read(target)
    if data.pop(customer_id, None) is None:
        return
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(data, fp, sort_keys=False)
