from datetime import date as date_type, datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional

from ..models.appointment import AppointmentStatus

class BookingRequest(BaseModel):
    """Booking form details.

    Fields are optional at the schema level so that the booking workflow
    can report which required field is missing.
    """
    service: Optional[str] = None
    date: Optional[date_type] = None
    time: Optional[str] = None
    dentist_id: Optional[str] = None
    notes: Optional[str] = None

    # Staff booking on behalf of a registered patient
    patient_id: Optional[str] = None

    # Anonymous contact details
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    contact: Optional[str] = None

class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: Optional[str] = None
    patient_name: str
    contact: Optional[str] = None
    is_anonymous: bool = False
    service: str
    dentist_id: Optional[str] = None
    dentist_name: Optional[str] = None
    date: date_type
    time: str
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

class TransitionRequest(BaseModel):
    status: str
    expected_status: Optional[AppointmentStatus] = None
