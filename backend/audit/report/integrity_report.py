"""Integrity report (offline audit job output).

No DB writes. No auto-fixes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal


UTC = timezone.utc
Overall = Literal["OK", "DEGRADED", "CRITICAL"]

_SEVERITY = {"OK": 0, "DEGRADED": 1, "CRITICAL": 2}


@dataclass(frozen=True, slots=True)
class Check:
    name: str
    status: Overall
    details: dict[str, Any]


def overall_status(checks: list[Check]) -> Overall:
    return max((c.status for c in checks), key=_SEVERITY.__getitem__, default="OK")


def build_report(*, now: datetime, checks: list[Check]) -> dict:
    return {
        "run_time": now.astimezone(UTC).isoformat(),
        "overall_status": overall_status(checks),
        "checks": [{"name": c.name, "status": c.status, "details": c.details} for c in checks],
        "warnings": [w for c in checks for w in c.details.get("warnings", [])],
    }


def write_report(path: Path, report: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
