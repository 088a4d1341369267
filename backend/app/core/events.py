"""Structured audit events.

One JSON object per line on the `fundadmin.audit` logger, always keyed by
`event`. Never pass secrets or raw tokens as fields.
"""

from __future__ import annotations

import json
import logging
from typing import Any


audit_logger = logging.getLogger("fundadmin.audit")


def log_event(event: str, /, *, level: int = logging.INFO, **fields: Any) -> None:
    audit_logger.log(level, json.dumps({"event": event, **fields}, default=str, sort_keys=True))
