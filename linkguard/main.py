from linkguard.db.Connection import database
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import time

from linkguard.core.config import settings
from linkguard.core.errors import LinkError, PersistenceFailure
from linkguard.db.Models import models
from linkguard.api import shortener, admin
from linkguard.api.deps import get_http_client, get_scheduler
from linkguard.core.logging_config import configure_logging
from linkguard.RateLimitHelper import RateLimitConfig, check_rate_limit, get_client_ip, is_limited_path

logger = configure_logging()
logger.info(f"Application '{settings.PROJECT_NAME}' starting up.")

rate_limit_config = RateLimitConfig.from_settings(settings)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="URL shortener with safety, liveness and lifecycle checks"
)


@app.on_event("startup")
def on_startup() -> None:
    if not database.verify_database_connection():
        raise RuntimeError("Database not reachable")
    models.Base.metadata.create_all(bind=database.engine)
    logger.info("Database models initialized/checked.")
    database.verify_redis_connection()
    get_scheduler().recover()


@app.on_event("shutdown")
def on_shutdown() -> None:
    logger.info("Shutting down gracefully...")
    get_scheduler().shutdown()
    get_http_client().close()
    try:
        database.engine.dispose()
    except Exception:
        logger.debug("Error disposing DB engine")
    try:
        database.redis_client.close()
    except Exception:
        logger.debug("Error closing Redis client")


# registered before the routers so /{short_code} does not shadow them
@app.get("/health", tags=["health"])
def health_check():
    return {"status": "healthy", "service": "url-shortener"}


@app.get("/ready", tags=["health"])
def readiness():
    details = {
        "db": "ok" if database.verify_database_connection() else "error",
        "redis": "ok" if database.verify_redis_connection() else "error",
    }
    return {"ready": details["db"] == "ok", "details": details}


app.include_router(admin.router, prefix="/api/v1")
app.include_router(shortener.router, prefix="")


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if not rate_limit_config.enabled or not is_limited_path(request.url.path):
        return await call_next(request)

    client_ip = get_client_ip(request)
    key = f"rate_limit:{client_ip}"

    allowed = check_rate_limit(database.redis_client, key, rate_limit_config)
    if allowed is False:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(rate_limit_config.window)},
            content={
                "kind": "RateLimited",
                "detail": f"Too many requests. Limit is {rate_limit_config.limit} per {rate_limit_config.window} seconds.",
            }
        )

    return await call_next(request)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms")
    return response


@app.exception_handler(LinkError)
async def link_error_handler(request: Request, exc: LinkError):
    if exc.is_server_error:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"kind": exc.kind, "detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}", exc_info=True)
    error = PersistenceFailure()
    return JSONResponse(status_code=error.status_code, content={"kind": error.kind, "detail": error.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"kind": "InternalError", "detail": "Internal server error"})
