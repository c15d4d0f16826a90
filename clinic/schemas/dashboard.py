from pydantic import BaseModel
from typing import List, Optional

from .appointment import AppointmentRead
from .user import CurrentUser

class DashboardMetrics(BaseModel):
    todays_appointments: int
    total_patients: int
    total_revenue: float
    completed_appointments: int
    recent_appointments: List[AppointmentRead] = []

class SessionState(BaseModel):
    user: Optional[CurrentUser] = None
    is_loading: bool = False
    view: str
    sections: List[str] = []

class SectionResolution(BaseModel):
    requested: str
    resolved: str
    allowed: bool
