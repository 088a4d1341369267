"""Integrity audit entry point (READ-ONLY).

STRICT:
- Reads from DB only.
- Writes integrity_report.json and logs one JSON line per check.
- NO database writes, NO repairs.

Exit code: 0 when the audit ran (whatever it found), 1 when it could not run.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

# Ensure backend/ is importable as top-level `app`.
BASE_DIR = Path(__file__).resolve().parents[2]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from app.core.db import get_session_factory  # noqa: E402
from app.core.env import load_env_if_present  # noqa: E402
import app.models as _models  # noqa: F401,E402
from audit.checks import deployment_check, hierarchy_check, reference_check  # noqa: E402
from audit.report.integrity_report import Check, build_report, write_report  # noqa: E402


UTC = timezone.utc
REPORT_PATH_ENV = "FA_AUDIT_REPORT_PATH"

logger = logging.getLogger("fundadmin.audit")

CHECKS: tuple[tuple[str, Callable[[Session], tuple[str, dict]]], ...] = (
    ("structure_hierarchy_check", hierarchy_check.run),
    ("deployment_invariant_check", deployment_check.run),
    ("structure_reference_check", reference_check.run),
)


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False))


def run_checks(db: Session) -> list[Check]:
    checks: list[Check] = []
    for name, check in CHECKS:
        st, details = check(db)
        checks.append(Check(name=name, status=st, details=details))  # type: ignore[arg-type]
        _log({"event": "audit_check", "name": name, "status": st})
    return checks


def main(report_path: Optional[Path] = None) -> int:
    load_env_if_present()
    now = datetime.now(tz=UTC)
    out_path = report_path or Path(
        os.environ.get(REPORT_PATH_ENV) or Path(__file__).resolve().parents[1] / "report" / "integrity_report.json"
    )

    try:
        db = get_session_factory()()
    except RuntimeError as ex:
        _log({"event": "audit_job_failed", "error_type": type(ex).__name__})
        return 1

    try:
        report = build_report(now=now, checks=run_checks(db))
        write_report(out_path, report)
        _log({"event": "audit_report_written", "path": str(out_path), "overall_status": report["overall_status"]})
        return 0
    except SQLAlchemyError as ex:
        _log({"event": "audit_job_failed", "error_type": type(ex).__name__})
        return 1
    finally:
        db.rollback()
        db.close()


if __name__ == "__main__":
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    raise SystemExit(main())
