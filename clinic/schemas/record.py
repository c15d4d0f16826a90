from datetime import date as date_type
from pydantic import BaseModel, ConfigDict
from typing import Optional

class RecordCreate(BaseModel):
    patient_id: Optional[str] = None
    appointment_id: Optional[int] = None
    treatment: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    cost: float = 0.0

class RecordUpdate(BaseModel):
    treatment: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    cost: Optional[float] = None

class RecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    patient_name: Optional[str] = None
    appointment_id: Optional[int] = None
    date: date_type
    treatment: str
    diagnosis: str
    notes: Optional[str] = None
    cost: float
    dentist_id: Optional[str] = None
    dentist_name: Optional[str] = None
