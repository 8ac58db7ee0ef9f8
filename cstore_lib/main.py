"""Application factory for the C-Store FastAPI app.

This module exposes `create_app(config)` which performs all setup
(logging, storage composition, exception handlers and router
registration). Nothing happens at import time so tests can construct
isolated apps:

    from cstore_lib.main import create_app
    from cstore_lib.config.config import ServerConfig
    app = create_app(ServerConfig(storage_backend='indexed', data_dir='/tmp/x'))

The storage backend is opened in the lifespan startup and closed at
shutdown, so use `TestClient(app)` as a context manager in tests.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cstore_lib.config.config import ServerConfig
from cstore_lib.logging_config import configure_logging
from cstore_lib.services import ServiceContainer
from cstore_lib.storage import NamespaceDirectory, StorageBackend, StorageError, create_storage


def create_app(config: Optional[ServerConfig] = None, storage: Optional[StorageBackend] = None) -> FastAPI:
    """Create and return a configured FastAPI application.

    `storage` may be passed to reuse an already-built backend; otherwise
    one is created from `config`. Either way the app owns it and closes it
    at shutdown.
    """
    config = config or ServerConfig()
    logger = configure_logging(config.log_level)

    if storage is None:
        storage = create_storage(
            backend=config.storage_backend,
            data_dir=config.data_dir,
            document_file=config.document_file,
            database_file=config.database_file,
        )

    container = ServiceContainer()
    container.register_singleton("config", config)
    container.register_singleton("storage", storage, owned=True)
    container.register_singleton("namespace_directory", NamespaceDirectory(storage))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        storage.open()
        logger.info("Using %s storage backend", storage.name)
        try:
            yield
        finally:
            container.close_all()

    app = FastAPI(title="C-Store API", lifespan=lifespan)
    app.state.container = container

    # Exception handlers
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={'error': 'Something went wrong!', 'message': str(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        # A known path with an unsupported method is an unmatched route too.
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={'error': 'Route not found', 'path': request.url.path},
            )
        return JSONResponse(status_code=exc.status_code, content={'error': str(exc.detail)})

    # Router registration: import routers here to avoid import-time side-effects
    from cstore_lib.server.api import router as server_router
    from cstore_lib.kv.api import router as kv_router

    app.include_router(server_router, prefix='')
    app.include_router(kv_router, prefix='/api')

    return app
