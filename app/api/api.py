from fastapi import APIRouter
from app.api.endpoints import confirm, stats, waitlist

api_router = APIRouter()

api_router.include_router(waitlist.router, tags=["waitlist"])
api_router.include_router(confirm.router, tags=["waitlist"])
api_router.include_router(stats.router, tags=["stats"])
