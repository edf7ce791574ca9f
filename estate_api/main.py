from fastapi import FastAPI

from estate_api.api.v1.router import v1_router
from estate_api.core.config import get_settings
from estate_api.core.exceptions import register_exception_handlers
from estate_api.core.logging import configure_logging
from estate_api.core.middleware import RequestIdMiddleware


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )

    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    register_exception_handlers(app)

    # API v1
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
