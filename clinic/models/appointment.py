from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

class Appointment(Base):
    __tablename__ = "appointments"

    # Autoincrement ids double as insertion order
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Patient (absent for anonymous bookings)
    patient_id = Column(String(64), nullable=True, index=True)
    patient_name = Column(String(255), nullable=False)
    contact = Column(String(255), nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)

    # Appointment details
    service = Column(String(255), nullable=False)
    dentist_id = Column(String(64), nullable=True)
    dentist_name = Column(String(255), nullable=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)
    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.SCHEDULED, nullable=False)
    notes = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, date='{self.date}', status='{self.status}')>"
