"""
FastAPI application factory.

Usage:
    python -m api.app                    # Dev server on port 8000
    WORKORDERS_API_URL=https://script.google.com/macros/s/.../exec python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Structured JSON logging when APP_LOG_FORMAT=json.
CORS middleware with configurable origins via APP_CORS_ORIGINS.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from api.routes import action_plans, download, filters, sync, work_orders
from api.routes import frontend as frontend_routes
from api.service import build_service, get_service, set_service
from pipeline.service import DashboardService
from utils.config import AppConfig, KnownValues
from utils.errors import (
    ExportEmptyError,
    NetworkError,
    NoCacheAvailable,
    RecordNotFoundError,
    RemoteError,
    SessionNotOpenError,
    ValidationError,
)
from utils.formatting import (
    char_count_level,
    cost_class,
    format_cost,
    format_date,
    month_name,
    truncate_text,
)

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("workorders_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


def _error_body(error: str, detail: str, status_code: int) -> dict:
    return {"error": error, "detail": detail, "status_code": status_code}


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def create_app(config: AppConfig | None = None,
               service: DashboardService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Override the environment configuration (useful for testing).
        service: Use this DashboardService instead of building one from
                 *config* (tests pass one wired to a fake remote client).

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    if service is not None:
        set_service(service)
    else:
        service = build_service(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load work orders on startup; stop scheduled reloads on shutdown."""
        if cfg.load_on_startup:
            outcome = get_service().load()
            if not outcome.ok:
                _logger.warning("Startup load failed: %s", outcome.error)
        yield
        get_service().close()

    app = FastAPI(
        title="Work Order Dashboard API",
        summary="Browse, filter and annotate maintenance work orders from a Google Sheets backend.",
        description=(
            "## Work Order Dashboard API\n\n"
            "Lists work orders read from a spreadsheet-backed Apps Script API, "
            "with filtering, search, pagination, action plan editing and CSV "
            "export.\n\n"
            "### Key concepts\n"
            "- **Open** work orders have no action plan yet.\n"
            "- **Offline mode** serves the last successful load from the local "
            "store; action plan edits are queued and only sent when "
            "`POST /api/v1/sync/pending/replay` is called.\n"
            "- **Filters** are held server-side and shared by the list, the "
            "HTML page and the export."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "work-orders", "description": "Filtered, paginated work orders and reloads."},
            {"name": "filters", "description": "Filter selector options."},
            {"name": "action-plans", "description": "Action plan edit sessions."},
            {"name": "download", "description": "CSV / Excel export of the filtered view."},
            {"name": "sync", "description": "Connectivity, manual sync and the offline queue."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request ID."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if path == "/health":
            return response

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": _client_ip(request),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                _client_ip(request), request_id,
            )
        if duration_ms > 2000:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Content Security Policy + security headers ───────────────────────────

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        """Add Content-Security-Policy, X-Content-Type-Options, and X-Frame-Options."""
        response = await call_next(request)
        # 'unsafe-inline' is required for the inline <script> blocks in templates.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' unpkg.com 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "font-src 'self'; "
            "connect-src 'self';"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handlers ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500,
                            content=_error_body("Internal server error", str(exc), 500))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content=_error_body("Bad request", str(exc), 400))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422,
                            content=_error_body("Validation error", str(exc), 422))

    @app.exception_handler(ExportEmptyError)
    async def export_empty_handler(request: Request, exc: ExportEmptyError):
        return JSONResponse(status_code=409, content=_error_body("Export failed", str(exc), 409))

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content=_error_body("Not found", str(exc), 404))

    @app.exception_handler(SessionNotOpenError)
    async def session_handler(request: Request, exc: SessionNotOpenError):
        return JSONResponse(status_code=409,
                            content=_error_body("No edit session", str(exc), 409))

    @app.exception_handler(NetworkError)
    async def network_error_handler(request: Request, exc: NetworkError):
        # An upstream HTTP status means the backend answered badly (502);
        # no status means it could not be reached at all (503).
        code = 502 if exc.status_code is not None else 503
        return JSONResponse(status_code=code,
                            content=_error_body("Remote unavailable", str(exc), code))

    @app.exception_handler(RemoteError)
    async def remote_error_handler(request: Request, exc: RemoteError):
        return JSONResponse(status_code=502,
                            content=_error_body("Remote error", str(exc), 502))

    @app.exception_handler(NoCacheAvailable)
    async def no_cache_handler(request: Request, exc: NoCacheAvailable):
        return JSONResponse(status_code=503,
                            content=_error_body("No cached data", str(exc), 503))

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 with the record count, or 503 when the last load failed
        and nothing is displayed."""
        svc = get_service()
        state = svc.state
        body = {
            "status": "ok",
            "online": svc.online,
            "source": state.source,
            "work_orders": len(state.records),
        }
        if state.load_error and not state.records:
            body.update(status="degraded", error=state.load_error)
            return JSONResponse(status_code=503, content=body)
        return body

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(work_orders.router,  prefix=prefix)
    app.include_router(filters.router,      prefix=prefix)
    app.include_router(action_plans.router, prefix=prefix)
    app.include_router(download.router,     prefix=prefix)
    app.include_router(sync.router,         prefix=prefix)

    # ── Static files + Jinja2 templates ───────────────────────────────────────
    _here = Path(__file__).parent.parent  # project root

    static_dir = _here / "static"
    templates_dir = _here / "templates"

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    if templates_dir.exists():
        templates = Jinja2Templates(directory=str(templates_dir))

        templates.env.filters["fmt_date"] = format_date
        templates.env.filters["fmt_cost"] = format_cost
        templates.env.filters["cost_class"] = cost_class
        templates.env.filters["truncate_text"] = truncate_text
        templates.env.filters["month_name"] = month_name
        templates.env.filters["char_level"] = char_count_level
        templates.env.globals["ALL"] = KnownValues.ALL

        # Wire templates into the frontend router
        frontend_routes.set_templates(templates)
        app.include_router(frontend_routes.router)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
