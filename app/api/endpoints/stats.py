from fastapi import APIRouter, Depends

from app.core.deps import get_stats_service
from app.schemas.waitlist import ErrorResponse, StatsResponse
from app.services.stats_service import StatsService

router = APIRouter()


@router.get("/stats", response_model=StatsResponse, responses={500: {"model": ErrorResponse}})
def waitlist_stats(service: StatsService = Depends(get_stats_service)):
    return StatsResponse(**service.get_stats())
