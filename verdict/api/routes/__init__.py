"""API route aggregation.

All sub-routers are collected into a single api_router that the
app factory mounts under the configured prefix.
"""

from fastapi import APIRouter

from verdict.api.routes import game, health, scheduler, submissions

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(game.router)
api_router.include_router(submissions.router)
api_router.include_router(scheduler.router)
