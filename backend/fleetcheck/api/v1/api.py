"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from fleetcheck.api.v1 import attempts, drivers, health, metrics, profiles

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(metrics.router, tags=["health"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["drivers"])
api_router.include_router(profiles.router, prefix="/drivers", tags=["profiles"])
api_router.include_router(attempts.router, prefix="/tests", tags=["tests"])
