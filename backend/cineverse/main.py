from fastapi import FastAPI

from cineverse.api.main import api_router
from cineverse.core.config import settings
from cineverse.exceptions.handlers import register_exception_handlers
from cineverse.logging_.logger import setup_logger


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


setup_logger("api")
app = create_app()
