import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, configure_logging, get_settings
from .database import Store, open_store
from .routes import pages as pages_routes
from .routes.pages import render

logger = logging.getLogger(__name__)


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if _wants_html(request):
        return render(
            request,
            "error.html",
            {"detail": exc.detail, "status_code": exc.status_code, "page_title": "Error"},
            status_code=exc.status_code,
        )
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    if _wants_html(request):
        return render(
            request,
            "error.html",
            {"detail": "Internal server error", "status_code": 500, "page_title": "Error"},
            status_code=500,
        )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def create_app(store: Store, settings: Optional[Settings] = None) -> FastAPI:
    """Build the many-to-many web app on top of an already opened store."""
    settings = settings or get_settings()

    app = FastAPI(title=settings.app_name)
    app.state.store = store
    app.state.settings = settings

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(pages_routes.router)
    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    store = open_store(settings.sqlalchemy_url, echo=settings.sql_echo)
    try:
        store.check_connection()
        store.create_schema(reset=settings.reset_schema)
        app = create_app(store, settings)
        logger.info("We've got liftoff on port: %s", settings.port)
        uvicorn.run(app, host=settings.host, port=settings.port)
    finally:
        store.close()


if __name__ == "__main__":
    main()
