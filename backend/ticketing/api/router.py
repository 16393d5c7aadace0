"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from ticketing.api.routes import tickets

api_router = APIRouter()
api_router.include_router(tickets.router)
