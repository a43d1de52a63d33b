"""anischedule - AniList 播出时间表缓存代理入口。"""

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from anischedule.core.config import settings
from anischedule.core.domain.exceptions import DomainException
from anischedule.core.infrastructure.health import (
    HealthStatus,
    RateLimiterHealthResult,
    ScheduleCacheHealthResult,
)
from anischedule.core.infrastructure.logging import setup_logging
from anischedule.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from anischedule.core.interfaces.http.routers import api_router
from anischedule.modules.schedule.application import dependencies as schedule_app_deps
from anischedule.modules.schedule.infrastructure import (
    dependencies as schedule_infra_deps,
)
from anischedule.modules.schedule.infrastructure.runtime_factory import (
    ScheduleRuntimeComponents,
    ScheduleRuntimeFactory,
)


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


# Initialize Sentry if configured
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting anischedule proxy...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # 进程级共享状态：限流器、两级缓存、single-flight 句柄
    app.state.schedule_runtime = ScheduleRuntimeFactory(settings).create()
    logger.info(
        f"Schedule runtime ready (ttl={settings.SCHEDULE_CACHE_TTL_SEC}s, "
        f"rate={settings.RATE_LIMIT_MAX_CALLS}/{settings.RATE_LIMIT_WINDOW_SEC}s)"
    )

    yield

    logger.info("Shutting down anischedule proxy...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "AniList 播出时间表缓存代理\n\n"
        "- `GET /cached-schedule`: 1 小时缓存 + single-flight 构建\n"
        "- `POST /anilist`: 限流的 GraphQL 透传"
    ),
    version=settings.VERSION,
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

# Dependency overrides (application -> infrastructure)
app.dependency_overrides[schedule_app_deps.get_schedule_service] = (
    schedule_infra_deps.get_schedule_service
)
app.dependency_overrides[schedule_app_deps.get_passthrough_service] = (
    schedule_infra_deps.get_passthrough_service
)

# Exception handlers
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS middleware
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

app.include_router(api_router)


@app.get("/health", tags=["health"])
async def health_check(request: Request):
    """Health check endpoint.

    Returns:
        schedule 缓存状态与限流器使用情况
    """
    runtime: ScheduleRuntimeComponents | None = getattr(
        request.app.state, "schedule_runtime", None
    )
    if runtime is None:
        return {
            "status": "unhealthy",
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
            "components": {},
        }

    cache_status = runtime.schedule_service.status()
    cache_health = ScheduleCacheHealthResult(
        status=HealthStatus.OK if cache_status.state == "fresh" else HealthStatus.DEGRADED,
        state=cache_status.state,
        building=cache_status.building,
        item_count=cache_status.item_count,
        age_sec=cache_status.age_sec,
    )

    limiter = runtime.rate_limiter
    calls_in_window = limiter.calls_in_window()
    limiter_health = RateLimiterHealthResult(
        status=(
            HealthStatus.OK
            if calls_in_window < limiter.max_calls
            else HealthStatus.DEGRADED
        ),
        calls_in_window=calls_in_window,
        max_calls=limiter.max_calls,
        window_sec=limiter.window_sec,
        min_interval_sec=limiter.min_interval_sec,
    )

    # 缓存为空/过期只是懒加载状态，不算不健康
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": settings.VERSION,
        "components": {
            "schedule_cache": cache_health.to_dict(),
            "rate_limiter": limiter_health.to_dict(),
            "media_cache": {"entries": len(runtime.media_cache)},
        },
        "credentials_configured": settings.anilist_credentials_configured,
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to anischedule",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
