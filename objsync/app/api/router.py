# objsync/app/api/router.py
from fastapi import APIRouter

from objsync.app.api.endpoints import objects, tokens

api_router = APIRouter()
api_router.include_router(tokens.router, prefix="/user", tags=["auth"])
api_router.include_router(objects.router, prefix="/objects", tags=["objects"])
