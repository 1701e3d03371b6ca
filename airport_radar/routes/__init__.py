"""API routes."""

from fastapi import APIRouter

from airport_radar.routes import admin, airports

api_router = APIRouter()

# Airport CRUD + nearby/popular queries
api_router.include_router(airports.router, prefix="/airports", tags=["airports"])

# Admin endpoints (bulk reload)
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
