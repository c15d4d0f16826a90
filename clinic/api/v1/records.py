from fastapi import APIRouter, Depends
from typing import List, Optional

from ...api.deps import get_clinic, require_section
from ...schemas.record import RecordCreate, RecordRead, RecordUpdate
from ...schemas.user import CurrentUser
from ...services.access_control import PATIENTS
from ...services.clinic import Clinic

router = APIRouter(prefix="/records", tags=["Patient Records"])

@router.post("", response_model=RecordRead, status_code=201)
async def create_record(
    details: RecordCreate,
    current_user: CurrentUser = Depends(require_section(PATIENTS)),
    clinic: Clinic = Depends(get_clinic)
):
    """Create a record for a completed visit."""
    return await clinic.records.create_record(details, current_user)

@router.get("", response_model=List[RecordRead])
async def search_records(
    search: Optional[str] = None,
    current_user: CurrentUser = Depends(require_section(PATIENTS)),
    clinic: Clinic = Depends(get_clinic)
):
    """Search records by treatment or patient name."""
    return await clinic.records.search_records(search, current_user)

@router.get("/{record_id}", response_model=RecordRead)
async def get_record(
    record_id: int,
    current_user: CurrentUser = Depends(require_section(PATIENTS)),
    clinic: Clinic = Depends(get_clinic)
):
    return await clinic.records.get_record(record_id, current_user)

@router.patch("/{record_id}", response_model=RecordRead)
async def edit_record(
    record_id: int,
    changes: RecordUpdate,
    current_user: CurrentUser = Depends(require_section(PATIENTS)),
    clinic: Clinic = Depends(get_clinic)
):
    return await clinic.records.edit_record(record_id, changes, current_user)
