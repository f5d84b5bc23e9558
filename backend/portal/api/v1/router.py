"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from portal.api.v1.auth import router as auth_router
from portal.api.v1.blogs import router as blogs_router
from portal.api.v1.compatibility import router as compatibility_router
from portal.api.v1.content import router as content_router
from portal.api.v1.dashboard import router as dashboard_router
from portal.api.v1.donation_requests import router as donation_requests_router
from portal.api.v1.donors import router as donors_router
from portal.api.v1.funding import router as funding_router
from portal.api.v1.health import router as health_router
from portal.api.v1.locations import router as locations_router
from portal.api.v1.public_config import router as public_config_router
from portal.api.v1.users import router as users_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(
    donation_requests_router, prefix="/donation-requests", tags=["donation-requests"]
)
api_v1_router.include_router(users_router, prefix="/users", tags=["users"])
api_v1_router.include_router(donors_router, prefix="/donors", tags=["donors"])
api_v1_router.include_router(locations_router, prefix="/locations", tags=["locations"])
api_v1_router.include_router(blogs_router, prefix="/blogs", tags=["blogs"])
api_v1_router.include_router(content_router, prefix="/content", tags=["content"])
api_v1_router.include_router(funding_router, prefix="/funding", tags=["funding"])
api_v1_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_v1_router.include_router(
    compatibility_router, prefix="/compatibility", tags=["compatibility"]
)
api_v1_router.include_router(public_config_router, prefix="/config", tags=["config"])
