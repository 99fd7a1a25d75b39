from fastapi import APIRouter

from fleetdesk.api.v1 import auth, import_routes

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(import_routes.router, tags=["import"])
