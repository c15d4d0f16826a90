from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Text
from sqlalchemy.sql import func

from ..core.database import Base

class PatientRecord(Base):
    __tablename__ = "patient_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    patient_id = Column(String(64), nullable=False, index=True)
    patient_name = Column(String(255), nullable=True)
    appointment_id = Column(Integer, nullable=True)

    # Clinical details
    date = Column(Date, nullable=False)
    treatment = Column(String(255), nullable=False)
    diagnosis = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    cost = Column(Float, nullable=False, default=0.0)

    # Treating dentist
    dentist_id = Column(String(64), nullable=True)
    dentist_name = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<PatientRecord(id={self.id}, patient_id={self.patient_id}, treatment='{self.treatment}')>"
