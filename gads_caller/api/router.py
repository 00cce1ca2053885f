"""
API router - aggregates all route modules.
"""
from fastapi import APIRouter

from gads_caller.api.health import router as health_router
from gads_caller.api.leads import router as leads_router
from gads_caller.api.webhooks import router as webhooks_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(leads_router)
api_router.include_router(webhooks_router)
