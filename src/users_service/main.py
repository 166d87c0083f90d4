import time

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from users_service.configs.logging_config import get_logger, setup_logging
from users_service.configs.settings import Settings, get_settings
from users_service.errors import AppError
from users_service.repositories.mongo import MongoConnection
from users_service.repositories.user_repository import UserRepository
from users_service.routers.health_router import router as health_router
from users_service.routers.internal_router import router as internal_router
from users_service.routers.user_router import router as user_router
from users_service.security.authorization import AuthorizationService
from users_service.services.user_events import UserEventPublisher, open_event_stream
from users_service.services.user_service import UserService
from users_service.utils.response import failure
from users_service.webclient.auth_service_client import AuthServiceClient

log = get_logger(__name__)


def _cors_origins(raw_origins) -> list[str]:
    # .env can provide a comma-separated string
    if isinstance(raw_origins, str):
        return [o.strip() for o in raw_origins.split(",") if o.strip()]
    if isinstance(raw_origins, (list, tuple, set)):
        return list(raw_origins)
    return []


def create_app() -> FastAPI:
    app = FastAPI(title="users_service", version="0.1.0")
    settings: Settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

        log.info("request.start method=%s path=%s request_id=%s", method, path, request_id)
        status_code = "unknown"
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            log.info(
                "request.end method=%s path=%s status=%s request_id=%s elapsed_ms=%s",
                method,
                path,
                status_code,
                request_id,
                elapsed_ms,
            )
        return response

    app.include_router(health_router)
    app.include_router(user_router)
    app.include_router(internal_router)

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        log.info("request.error type=app_error status=%s message=%s", exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=failure(exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error: %s", str(exc))
        return JSONResponse(status_code=500, content=failure("internal server error"))

    @app.on_event("startup")
    async def startup() -> None:
        settings: Settings = get_settings()
        setup_logging(settings.LOG_LEVEL)

        mongo = MongoConnection(settings)
        mongo_db = mongo.connect()
        app.state.settings = settings
        app.state.mongo = mongo

        repo = UserRepository(mongo_db, settings)
        await repo.ensure_indexes()

        http_client = httpx.AsyncClient(timeout=settings.auth_service_timeout)
        auth_client = AuthServiceClient(settings.auth_service_url, client=http_client)
        app.state.auth_client = auth_client

        events = UserEventPublisher(
            await open_event_stream(settings),
            settings.redis_stream_users,
            enabled=settings.events_enabled,
        )
        app.state.events = events
        app.state.user_service = UserService(
            repo=repo,
            authorization=AuthorizationService(),
            auth_client=auth_client,
            events=events,
            settings=settings,
        )
        log.info("startup.done service=%s env=%s", settings.SERVICE_NAME, settings.ENVIRONMENT)

    @app.on_event("shutdown")
    async def shutdown() -> None:
        log.info("shutdown.begin")
        events = getattr(app.state, "events", None)
        if events is not None:
            await events.aclose()
        auth_client = getattr(app.state, "auth_client", None)
        if auth_client is not None:
            await auth_client.aclose()
        mongo = getattr(app.state, "mongo", None)
        if mongo is not None:
            mongo.close()
        log.info("shutdown.done")

    return app


app = create_app()
