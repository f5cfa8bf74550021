"""FastAPI application (agent pro operations API).

Operational goals:
- Scheduler-triggered bot runs (auto-healer, monitoring)
- Unauthenticated liveness probes for the monitoring bot
- Request-id propagation and structured access logs
- Safe failure modes (no fabricated health data)
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.router import router as api_router
from app.security.auth import AuthError
import app.models as _models  # noqa: F401  (register all ORM models deterministically)


logger = logging.getLogger("agentpro")
logger.setLevel(logging.INFO)


def create_app() -> FastAPI:
    app = FastAPI(
        title="agent pro operations API",
        version="1.0.0",
        openapi_url="/openapi.json",
        docs_url=None,
        redoc_url=None,
        description="Automated health checks, self-remediation and uptime monitoring.",
    )

    app.include_router(api_router)

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.time()
        try:
            response = await call_next(request)
        except OperationalError:
            return JSONResponse(
                status_code=503,
                content={"success": False, "error": "Service temporarily unavailable."},
                headers={"x-request-id": request_id},
            )
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error", extra={"request_id": request_id})
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Internal error."},
                headers={"x-request-id": request_id},
            )

        duration_ms = int((time.time() - start) * 1000)
        response.headers["x-request-id"] = request_id

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
