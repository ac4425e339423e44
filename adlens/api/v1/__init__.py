"""
API v1 routes
"""
from fastapi import APIRouter

from adlens.api.v1 import health, cron, scrape, advertisers, admin

api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(health.router)
api_router.include_router(cron.router)
api_router.include_router(scrape.router)
api_router.include_router(advertisers.router)
api_router.include_router(admin.router)
