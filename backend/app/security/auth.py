"""Bearer-token authentication boundary.

Design:
- HS256 JWT bearer tokens issued by the external auth service.
- Claims are normalized into one validated `Actor` here; the domain core
  never inspects raw request objects or token claims.
- Both current (`sub`/`role`) and legacy (`userId`/`userRole`, `id`) claim
  shapes are accepted.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Request, status

from app.core.config import get_jwt_secret
from app.security.policy import Actor
from app.security.roles import parse_role
from domain.core.errors import InvalidRole


class AuthError(HTTPException):
    pass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from token claims."""

    actor: Actor
    token_fingerprint: str  # stable, non-sensitive identifier for audit logs


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _unauthorized(detail: str) -> AuthError:
    return AuthError(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def sign_hs256(signing_input: bytes, secret: bytes) -> str:
    return _b64url_encode(hmac.new(secret, signing_input, hashlib.sha256).digest())


def decode_and_verify_jwt(token: str) -> dict[str, Any]:
    """Verify HS256 signature and the `exp` claim; return the payload."""
    try:
        header_b64, payload_b64, sig_b64 = token.split(".")
    except ValueError as e:
        raise _unauthorized("Invalid token format.") from e

    expected_sig = sign_hs256(f"{header_b64}.{payload_b64}".encode("ascii"), get_jwt_secret())
    if not hmac.compare_digest(expected_sig, sig_b64):
        raise _unauthorized("Invalid token signature.")

    try:
        header = json.loads(_b64url_decode(header_b64))
        payload = json.loads(_b64url_decode(payload_b64))
    except (ValueError, UnicodeDecodeError) as e:
        raise _unauthorized("Invalid token encoding.") from e

    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise _unauthorized("Invalid token encoding.")
    if header.get("alg") != "HS256" or header.get("typ") != "JWT":
        raise _unauthorized("Unsupported token header.")

    exp = payload.get("exp")
    if exp is not None:
        try:
            exp_i = int(exp)
        except (TypeError, ValueError) as e:
            raise _unauthorized("Invalid exp claim.") from e
        if int(time.time()) >= exp_i:
            raise _unauthorized("Token expired.")

    return payload


def actor_from_claims(claims: dict[str, Any]) -> Actor:
    """Unify current and legacy claim shapes into one Actor."""
    identity = next((claims[k] for k in ("sub", "userId", "id") if claims.get(k) not in (None, "")), None)
    raw_role = next((claims[k] for k in ("role", "userRole") if claims.get(k) is not None), None)
    if identity is None or raw_role is None:
        raise _unauthorized("Missing required claims.")
    try:
        role = parse_role(raw_role)
    except InvalidRole as e:
        raise _unauthorized("Invalid role claim.") from e
    return Actor(identity=str(identity), role=role)


def token_fingerprint(token: str) -> str:
    """Non-reversible token fingerprint for audit logs."""
    raw = hashlib.sha256(token.encode("utf-8")).digest()
    return _b64url_encode(raw[:18])


def get_current_principal(request: Request) -> Principal:
    """Extract and validate the bearer token."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        raise _unauthorized("Missing bearer token.")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise _unauthorized("Missing bearer token.")

    claims = decode_and_verify_jwt(token)
    return Principal(actor=actor_from_claims(claims), token_fingerprint=token_fingerprint(token))


def maybe_get_principal(request: Request) -> Optional[Principal]:
    """Principal for endpoints open to anonymous callers (registration)."""
    if not request.headers.get("authorization"):
        return None
    return get_current_principal(request)
