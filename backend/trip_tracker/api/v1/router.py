from fastapi import APIRouter

from trip_tracker.api.v1 import queue, updates

api_router = APIRouter()

api_router.include_router(updates.router, prefix="/updates", tags=["updates"])
api_router.include_router(queue.router, tags=["queue"])
