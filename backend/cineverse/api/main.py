from fastapi import APIRouter

from cineverse.api.routes import (
    movies,
    utils,
)

api_router = APIRouter()
api_router.include_router(utils.router)
api_router.include_router(movies.router)
