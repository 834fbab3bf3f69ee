from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import AppConfig, load_config
from .db import open_catalog
from .errors import BiblyError, ErrorKind
from .routes.api import build_api_router
from .services.catalog import CatalogService
from .services.resolver import MetadataResolver

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INCOMPLETE_DATA: 422,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.NOT_IMPLEMENTED: 501,
    ErrorKind.STORAGE: 500,
}


def create_app(config: AppConfig | None = None) -> FastAPI:
    config = config or load_config()

    app = FastAPI(title="Bibly Catalog Backend")
    app.state.config = config
    app.state.catalog = None
    app.state.resolver = MetadataResolver(config)

    def get_catalog() -> CatalogService:
        if app.state.catalog is None:
            raise RuntimeError("Catalog is not open.")
        return app.state.catalog

    def get_resolver() -> MetadataResolver:
        return app.state.resolver

    @app.on_event("startup")
    def startup() -> None:
        logging.basicConfig(level=config.log_level)
        catalog = open_catalog(config.db_path)
        app.state.catalog = CatalogService(catalog, config.fallback_genre_name)

    @app.on_event("shutdown")
    def shutdown() -> None:
        if app.state.catalog is not None:
            app.state.catalog.catalog.close()
            app.state.catalog = None

    @app.exception_handler(BiblyError)
    def handle_bibly_error(request: Request, exc: BiblyError) -> JSONResponse:
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "kind": exc.kind.value},
        )

    app.include_router(build_api_router(get_catalog=get_catalog, get_resolver=get_resolver))
    return app


app = create_app()
