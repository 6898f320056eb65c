from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .cache import ComponentCache, MemoryCache, NullCache, RedisCache
from .config import Settings
from .data.repository import ComponentRepository
from .data.store import ComponentStore, PostgresStore, SQLiteStore
from .errors import CatalogError, ComponentNotFoundError
from .logging_setup import configure_logging
from .responses import COMPONENT_NOT_FOUND_MESSAGE, HEALTH_MESSAGE, error, success
from .schemas import ComponentQuery
from .service import ComponentService

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> ComponentStore:
    settings.validate()
    if settings.db_driver == "sqlite":
        store: ComponentStore = SQLiteStore(settings.db_path, timeout_seconds=settings.store_timeout_seconds)
        store.ping()
        return store
    return PostgresStore(
        host=settings.db_host,
        port=settings.db_port,
        user=settings.db_user,
        password=settings.db_password,
        dbname=settings.db_name,
        sslmode=settings.db_sslmode,
        timeout_seconds=settings.store_timeout_seconds,
        max_connections=settings.db_pool_max,
    )


def build_cache(settings: Settings) -> ComponentCache:
    if settings.cache_backend == "redis":
        return RedisCache.connect(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            db=settings.redis_db,
            timeout_seconds=settings.store_timeout_seconds,
        )
    if settings.cache_backend == "memory":
        return MemoryCache()
    return NullCache()


def get_service(request: Request) -> ComponentService:
    service = request.app.state.service
    if service is None:
        raise CatalogError("component service is not initialized")
    return service


def create_app(settings: Settings | None = None, service: ComponentService | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store: Optional[ComponentStore] = None
        cache: Optional[ComponentCache] = None
        if app.state.service is None:
            configure_logging(settings.log_level)
            store = build_store(settings)
            try:
                cache = build_cache(settings)
            except Exception:
                store.close()
                raise
            app.state.service = ComponentService(
                ComponentRepository(store),
                cache,
                cache_ttl_seconds=settings.cache_ttl_seconds,
            )
        logger.info("[RigCatalog] Backend is running on port %s", settings.port)
        try:
            yield
        finally:
            if cache is not None:
                cache.close()
            if store is not None:
                store.close()

    app = FastAPI(title="RigCatalog", lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if isinstance(exc, ComponentNotFoundError):
            logger.info("%s %s: %s", request.method, request.url.path, exc)
            return error(404, COMPONENT_NOT_FOUND_MESSAGE)
        if exc.status_code == 400:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        else:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return error(exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        response = error(exc.status_code)
        for name, value in (exc.headers or {}).items():
            response.headers[name] = value
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error(400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("%s %s crashed", request.method, request.url.path)
        return error(500)

    @app.get("/health")
    def health():
        return success(None, HEALTH_MESSAGE)

    @app.get("/components")
    def list_components(page: Optional[str] = None, service: ComponentService = Depends(get_service)):
        return success(service.dispatch(ComponentQuery(page=page)))

    # 必须先于 /components/{category}/{brand} 注册 - must be registered before the category/brand route
    @app.get("/components/item/{id}")
    def get_component(id: str, page: Optional[str] = None, service: ComponentService = Depends(get_service)):
        return success(service.dispatch(ComponentQuery(id=id, page=page)))

    @app.get("/components/{category}")
    def list_by_category(
        category: str,
        page: Optional[str] = None,
        service: ComponentService = Depends(get_service),
    ):
        return success(service.dispatch(ComponentQuery(category=category, page=page)))

    @app.get("/components/{category}/{brand}")
    def list_by_category_and_brand(
        category: str,
        brand: str,
        page: Optional[str] = None,
        service: ComponentService = Depends(get_service),
    ):
        return success(service.dispatch(ComponentQuery(category=category, brand=brand, page=page)))

    return app


app = create_app()


def run() -> None:
    settings = Settings.from_env()
    uvicorn.run("rigcatalog.main:app", host="0.0.0.0", port=settings.port)
