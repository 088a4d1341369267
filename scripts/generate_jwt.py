"""Generate an HS256 bearer token accepted by the fund administration API.

Usage:
  export FA_JWT_SECRET="your-secret"
  python scripts/generate_jwt.py --sub user-123 --role ADMIN

The role may be a name (ROOT, ADMIN, STAFF, SUPPORT, INVESTOR, GUEST) or a
rank number; it is written to the `role` claim as the rank.
"""

from __future__ import annotations

import argparse
import base64
import hashlib
import hmac
import json
import os
import sys
import time
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.config import JWT_SECRET_ENV  # noqa: E402
from app.core.env import load_env_if_present  # noqa: E402
from app.security.roles import Role, parse_role  # noqa: E402
from domain.core.errors import InvalidRole  # noqa: E402


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def make_jwt(*, sub: str, role: Role, secret: str, exp_seconds: int) -> str:
    header = {"alg": "HS256", "typ": "JWT"}
    payload = {"sub": sub, "role": int(role), "exp": int(time.time()) + exp_seconds}

    header_b64 = b64url(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = b64url(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{b64url(sig)}"


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--sub", required=True, help="User id (must match users.id)")
    ap.add_argument("--role", required=True, help="Role name or rank")
    ap.add_argument("--exp-seconds", type=int, default=60 * 60 * 12)  # 12h
    args = ap.parse_args()

    try:
        role = parse_role(args.role)
    except InvalidRole as e:
        ap.error(str(e))

    load_env_if_present()
    secret = os.environ.get(JWT_SECRET_ENV)
    if not secret:
        raise SystemExit(f"Missing {JWT_SECRET_ENV} in environment.")

    print(make_jwt(sub=args.sub, role=role, secret=secret, exp_seconds=args.exp_seconds))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
