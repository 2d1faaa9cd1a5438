from fastapi import APIRouter, Depends

from backend.auth.dependencies import get_current_claims, get_repository
from backend.repositories.base import Repository
from backend.schemas.dashboard import DashboardStats
from backend.services.dashboard import compute_dashboard_stats

router = APIRouter(tags=['dashboard'], dependencies=[Depends(get_current_claims)])


@router.get('/stats', response_model=DashboardStats)
def dashboard_stats(repository: Repository = Depends(get_repository)):
    return compute_dashboard_stats(repository.list_students())
