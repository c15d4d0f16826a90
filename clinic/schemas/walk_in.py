from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional

from ..models.walk_in import WalkInPriority, WalkInStatus

class WalkInCreate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    dentist_id: Optional[str] = None
    priority: str = WalkInPriority.NORMAL.value
    notes: Optional[str] = None
    arrived_at: Optional[datetime] = None

class WalkInRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    service: str
    dentist_id: Optional[str] = None
    priority: WalkInPriority
    notes: Optional[str] = None
    arrived_at: datetime
    status: WalkInStatus

class QueueEntry(BaseModel):
    position: int
    entry: WalkInRead
