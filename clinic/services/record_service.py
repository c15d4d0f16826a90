import logging
from datetime import date
from typing import List, Optional

from ..core.errors import NotFound, ValidationError
from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from ..schemas.record import RecordCreate, RecordRead, RecordUpdate
from ..schemas.user import CurrentUser
from ..stores.base import AppointmentStore, PatientRecordStore, UserStore
from .access_control import AccessControlGate
from .aggregator import clinic_today

logger = logging.getLogger(__name__)


def _check_cost(cost: Optional[float]) -> None:
    if cost is not None and cost < 0:
        raise ValidationError("Cost cannot be negative")


class PatientRecordService:
    """Clinical records finalised after completed visits."""

    def __init__(
        self,
        store: PatientRecordStore,
        appointments: AppointmentStore,
        users: UserStore,
        gate: AccessControlGate,
    ):
        self.store = store
        self.appointments = appointments
        self.users = users
        self.gate = gate

    async def create_record(
        self,
        details: RecordCreate,
        actor: CurrentUser,
        today: Optional[date] = None,
    ) -> RecordRead:
        self.gate.require(actor.role, "record:create")

        if not details.patient_id:
            raise ValidationError("Patient is required")
        if not (details.treatment or "").strip():
            raise ValidationError("Treatment is required")
        if not (details.diagnosis or "").strip():
            raise ValidationError("Diagnosis is required")
        _check_cost(details.cost)

        patient = await self.users.get(details.patient_id)
        if patient is None or patient.role != UserRole.PATIENT:
            raise ValidationError(f"Unknown patient: {details.patient_id}")

        appointment_id = await self._eligible_appointment(patient.id, details.appointment_id)

        record = await self.store.create({
            "patient_id": patient.id,
            "patient_name": patient.name,
            "appointment_id": appointment_id,
            "date": today or clinic_today(),
            "treatment": details.treatment.strip(),
            "diagnosis": details.diagnosis.strip(),
            "notes": details.notes,
            "cost": details.cost,
            "dentist_id": actor.id,
            "dentist_name": actor.name,
        })
        logger.info(f"Created record {record.id} for patient {patient.id}")
        return record

    async def _eligible_appointment(self, patient_id: str, appointment_id: Optional[int]) -> Optional[int]:
        """Return the completed appointment the record belongs to.

        Without an explicit id the patient's first completed visit is used,
        if there is one.
        """
        if appointment_id is not None:
            appointment = await self.appointments.get(appointment_id)
            if appointment is None or appointment.patient_id != patient_id:
                raise ValidationError(f"Appointment {appointment_id} does not belong to this patient")
            if appointment.status != AppointmentStatus.COMPLETED:
                raise ValidationError(
                    f"Appointment {appointment_id} is {appointment.status.value}; "
                    f"records can only follow completed visits"
                )
            return appointment.id

        for appointment in await self.appointments.list():
            if appointment.patient_id == patient_id and appointment.status == AppointmentStatus.COMPLETED:
                return appointment.id
        return None

    async def edit_record(self, record_id: int, changes: RecordUpdate, actor: CurrentUser) -> RecordRead:
        self.gate.require(actor.role, "record:edit")

        updates = changes.model_dump(exclude_unset=True)
        for field in ("treatment", "diagnosis"):
            if field in updates:
                if not (updates[field] or "").strip():
                    raise ValidationError(f"{field.capitalize()} cannot be empty")
                updates[field] = updates[field].strip()
        if "cost" in updates:
            if updates["cost"] is None:
                raise ValidationError("Cost cannot be empty")
            _check_cost(updates["cost"])

        record = await self.store.update(record_id, updates)
        logger.info(f"Edited record {record_id}: {sorted(updates)}")
        return record

    async def get_record(self, record_id: int, actor: CurrentUser) -> RecordRead:
        self.gate.require(actor.role, "record:view")
        record = await self.store.get(record_id)
        if record is None:
            raise NotFound(f"Patient record {record_id} not found")
        return record

    async def search_records(self, term: Optional[str], actor: CurrentUser) -> List[RecordRead]:
        """Match treatment or patient name, newest first."""
        self.gate.require(actor.role, "record:view")

        needle = (term or "").strip().lower()
        records = [
            record for record in await self.store.list()
            if not needle
            or needle in record.treatment.lower()
            or needle in (record.patient_name or "").lower()
        ]
        return list(reversed(records))
