"""FastAPI server for TabGrouper"""

from __future__ import annotations

from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tabgrouper.api.middleware.rate_limit import RateLimitMiddleware
from tabgrouper.api.routes.groups import router as groups_router
from tabgrouper.api.routes.health import router as health_router
from tabgrouper.config import ALLOWED_ORIGINS, API_HOST, API_PORT, APP_VERSION, DEBUG, DEV_ORIGINS
from tabgrouper.grouping.errors import TabGroupingError, TooSoon
from tabgrouper.observability.logging import get_logger
from tabgrouper.observability.telemetry import counter, log_event

# Load environment variables from .env file
load_dotenv()

app = FastAPI(title="TabGrouper API", version=APP_VERSION)

logger = get_logger(__name__)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Validation error handler that does not echo request contents back.
    """
    logger.warning("Validation error on %s: %d error(s)", request.url.path, len(exc.errors()))
    counter("api.validation_errors")

    return JSONResponse(
        status_code=422,
        content={
            "ok": False,
            "error": "Invalid request format. Please check your request and try again.",
            "kind": "invalid_request",
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")],
        },
    )


@app.exception_handler(TabGroupingError)
async def grouping_error_handler(request: Request, exc: TabGroupingError) -> JSONResponse:
    """Render every grouping failure as the {ok: false, error, kind} envelope."""
    counter(f"api.errors.{exc.kind}")
    log_event("api.grouping_error", path=request.url.path, kind=exc.kind)

    headers = {"Retry-After": str(exc.wait_seconds)} if isinstance(exc, TooSoon) else None
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict(), headers=headers)


# CORS - browser extension origins come from TABGROUPER_ALLOWED_ORIGINS
origins = list(ALLOWED_ORIGINS)
if DEBUG:
    origins.extend(DEV_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_origin_regex=r"^(chrome|moz)-extension://[a-z0-9-]+$" if DEBUG else None,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.add_middleware(RateLimitMiddleware)

app.include_router(health_router)
app.include_router(groups_router)

log_event("api.startup", service="tabgrouper", version=APP_VERSION)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "TabGrouper API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "analyze": "/api/groups/analyze",
            "pending": "/api/groups/pending",
            "apply_plan": "/api/groups/apply-plan",
        },
    }


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("tabgrouper.api.app:app", host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
