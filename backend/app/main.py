"""FastAPI application (fund administration backend).

Operational hardening goals:
- Bearer authentication resolved into one Actor per request
- Authorization decided by a single evaluator inside the services
- Per-actor rate limiting
- Request-id propagation and structured access logs
- Domain failures mapped to transport status in one place
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import router as api_router
from app.core.config import get_cors_origins, get_log_level
import app.models as _models  # noqa: F401  (register all ORM models deterministically)
from domain.core.errors import DomainError, StorageFailure


logger = logging.getLogger("fundadmin")


def _error_body(detail: object, kind: str) -> dict[str, object]:
    return {"detail": detail, "error": kind}


def create_app() -> FastAPI:
    logger.setLevel(get_log_level())

    app = FastAPI(
        title="Fund Administration API",
        version="1.0.0",
        openapi_url="/openapi.json",
        docs_url=None,
        redoc_url=None,
        description="Structures, investors, smart-contract tokenization records and user roles.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        if isinstance(exc, StorageFailure):
            # Underlying driver message stays in the logs, not in the response.
            logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
            detail = "Service temporarily unavailable." if exc.transient else "Storage failure."
            return JSONResponse(status_code=exc.http_status, content=_error_body(detail, exc.kind))
        return JSONResponse(status_code=exc.http_status, content=_error_body(exc.message, exc.kind))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(errors, "validation_error"))

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error", extra={"request_id": request_id})
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal error."},
                headers={"x-request-id": request_id},
            )

        duration_ms = int((time.time() - start) * 1000)
        response.headers["x-request-id"] = request_id

        # Structured access log (no sensitive content).
        logger.info(
            json.dumps(
                {
                    "event": "access",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": duration_ms,
                }
            )
        )
        return response

    return app


app = create_app()
