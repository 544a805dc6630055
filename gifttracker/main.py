from collections import defaultdict
from time import perf_counter
import asyncio
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from gifttracker.api.routes import budgets, gifts, profiles, reconciliations, transfer, ws
from gifttracker.core.config import settings
from gifttracker.core.errors import GiftTrackerError
from gifttracker.core.logger import configure_logging
from gifttracker.db.session import async_session_factory, ensure_schema_ready
from gifttracker.realtime.manager import manager


logger = configure_logging()

app = FastAPI(
    title=settings.app_name,
    description="Household gift tracker with cost splitting and live updates",
    version="0.1.0",
)

metrics = {
    "requests_total": 0,
    "errors_total": 0,
    "latency_total_ms": 0.0,
    "by_path": defaultdict(
        lambda: {"count": 0, "errors": 0, "latency_total_ms": 0.0}
    ),
}


cors_origins = settings.backend_cors_origins
if not cors_origins and settings.frontend_url:
    cors_origins = [settings.frontend_url]

logger.info("CORS origins parsed=%s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id"],
    max_age=600,
)


def _record_request(path: str, duration_ms: float, error: bool) -> None:
    metrics["requests_total"] += 1
    metrics["latency_total_ms"] += duration_ms
    path_metrics = metrics["by_path"][path]
    path_metrics["count"] += 1
    path_metrics["latency_total_ms"] += duration_ms
    if error:
        metrics["errors_total"] += 1
        path_metrics["errors"] += 1


@app.middleware("http")
async def tracing_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    start = perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (perf_counter() - start) * 1000.0
        _record_request(request.url.path, duration_ms, error=True)
        logger.exception(
            "Request failed id=%s method=%s path=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            duration_ms,
        )
        raise

    duration_ms = (perf_counter() - start) * 1000.0
    _record_request(request.url.path, duration_ms, error=response.status_code >= 500)
    logger.info(
        "Request completed id=%s method=%s path=%s status=%s duration_ms=%.2f",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    response.headers["X-Request-Id"] = request_id
    return response


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.on_event("startup")
async def on_startup() -> None:
    try:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(_handle_async_exception)
    except RuntimeError:
        logger.warning("No running event loop during startup")

    db_url = make_url(settings.database_dsn)
    logger.info(
        "DB config driver=%s host=%s database=%s",
        db_url.get_backend_name(),
        db_url.host,
        db_url.database,
    )
    await ensure_schema_ready()


def _handle_async_exception(loop, context) -> None:
    message = context.get("message", "Async error")
    exc = context.get("exception")
    if exc:
        logger.error("Async error: %s", message, exc_info=exc)
    else:
        logger.error("Async error: %s", message)


@app.exception_handler(GiftTrackerError)
async def domain_exception_handler(request: Request, exc: GiftTrackerError):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
    else:
        logger.info(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__, "details": exc.details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception occurred for %s %s", request.method, request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_type": type(exc).__name__, "details": {}},
    )


app.include_router(profiles.router)
app.include_router(gifts.router)
app.include_router(budgets.router)
app.include_router(reconciliations.router)
app.include_router(transfer.router)
app.include_router(ws.router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/db")
async def health_db():
    try:
        async with async_session_factory() as session:
            result = await session.execute(select(1))
            return {"status": "ok", "database": str(result.scalar())}
    except SQLAlchemyError as e:
        logger.exception("DB health check failed")
        return JSONResponse(status_code=500, content={"status": "error", "error": str(e)})


@app.get("/metrics")
async def get_metrics() -> dict[str, object]:
    by_path = {
        path: {
            "count": data["count"],
            "errors": data["errors"],
            "avg_latency_ms": (
                data["latency_total_ms"] / data["count"] if data["count"] else 0.0
            ),
        }
        for path, data in metrics["by_path"].items()
    }
    return {
        "requests_total": metrics["requests_total"],
        "errors_total": metrics["errors_total"],
        "avg_latency_ms": (
            metrics["latency_total_ms"] / metrics["requests_total"]
            if metrics["requests_total"]
            else 0.0
        ),
        "ws_connections": manager.active_count,
        "by_path": by_path,
    }
