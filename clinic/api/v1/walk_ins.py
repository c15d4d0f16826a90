from fastapi import APIRouter, Depends
from typing import List, Optional

from ...api.deps import get_clinic, require_section
from ...schemas.user import CurrentUser
from ...schemas.walk_in import QueueEntry, WalkInCreate, WalkInRead
from ...services.access_control import WALK_IN
from ...services.clinic import Clinic

router = APIRouter(prefix="/walk-ins", tags=["Walk-in Queue"])

@router.post("", response_model=QueueEntry, status_code=201)
async def add_walk_in(
    details: WalkInCreate,
    current_user: CurrentUser = Depends(require_section(WALK_IN)),
    clinic: Clinic = Depends(get_clinic)
):
    """Add a walk-in patient to the queue."""
    entry = await clinic.walk_ins.enqueue(details, current_user.role)
    position = await clinic.walk_ins.position(entry.id)
    return QueueEntry(position=position, entry=entry)

@router.get("", response_model=List[QueueEntry])
async def list_queue(
    current_user: CurrentUser = Depends(require_section(WALK_IN)),
    clinic: Clinic = Depends(get_clinic)
):
    """Return the waiting queue in service order."""
    return await clinic.walk_ins.queue(current_user.role)

@router.post("/next", response_model=Optional[WalkInRead])
async def take_next(
    dentist_id: Optional[str] = None,
    current_user: CurrentUser = Depends(require_section(WALK_IN)),
    clinic: Clinic = Depends(get_clinic)
):
    """Take the next walk-in into service; null when the queue is empty."""
    return await clinic.walk_ins.dequeue_next(current_user.role, dentist_id=dentist_id)

@router.post("/{entry_id}/complete", response_model=WalkInRead)
async def complete_walk_in(
    entry_id: int,
    current_user: CurrentUser = Depends(require_section(WALK_IN)),
    clinic: Clinic = Depends(get_clinic)
):
    return await clinic.walk_ins.complete(entry_id, current_user.role)
