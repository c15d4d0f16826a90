from fastapi import APIRouter, Depends

from ...api.deps import get_clinic, get_current_user
from ...schemas.dashboard import DashboardMetrics
from ...schemas.user import CurrentUser
from ...services.clinic import Clinic

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

@router.get("", response_model=DashboardMetrics)
async def dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    clinic: Clinic = Depends(get_clinic)
):
    """Current clinic metrics, recomputed on every request."""
    return await clinic.aggregator.dashboard(current_user)
