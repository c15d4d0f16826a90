"""
Dashboard metrics.

The functions here are pure: they take store snapshots and return numbers.
``RecordAggregator`` re-reads the stores on every call, so the figures are
never older than the request that asked for them.
"""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..models.appointment import AppointmentStatus
from ..schemas.appointment import AppointmentRead
from ..schemas.dashboard import DashboardMetrics
from ..schemas.record import RecordRead
from ..schemas.user import CurrentUser
from ..stores.base import AppointmentStore, PatientRecordStore
from .access_control import AccessControlGate


def clinic_today() -> date:
    """Current date in the clinic's timezone (UTC when unset)."""
    if settings.CLINIC_TIMEZONE:
        return datetime.now(ZoneInfo(settings.CLINIC_TIMEZONE)).date()
    return datetime.now(timezone.utc).date()


def todays_scheduled_count(appointments: Iterable[AppointmentRead], today: date) -> int:
    return sum(
        1 for appointment in appointments
        if appointment.date == today and appointment.status == AppointmentStatus.SCHEDULED
    )


def distinct_patient_count(appointments: Iterable[AppointmentRead]) -> int:
    # Anonymous bookings have no patient id and are not counted
    return len({
        appointment.patient_id for appointment in appointments
        if appointment.patient_id is not None
    })


def total_revenue(records: Iterable[RecordRead]) -> float:
    return sum((record.cost for record in records), 0.0)


def completed_count(appointments: Iterable[AppointmentRead]) -> int:
    return sum(1 for appointment in appointments if appointment.status == AppointmentStatus.COMPLETED)


def recent_appointments(appointments: Iterable[AppointmentRead], limit: int = 5) -> List[AppointmentRead]:
    return list(appointments)[:limit]


def compute_dashboard(
    appointments: List[AppointmentRead],
    records: List[RecordRead],
    today: date,
    recent_limit: int = settings.RECENT_APPOINTMENTS_LIMIT,
) -> DashboardMetrics:
    return DashboardMetrics(
        todays_appointments=todays_scheduled_count(appointments, today),
        total_patients=distinct_patient_count(appointments),
        total_revenue=total_revenue(records),
        completed_appointments=completed_count(appointments),
        recent_appointments=recent_appointments(appointments, recent_limit),
    )


class RecordAggregator:
    def __init__(
        self,
        appointments: AppointmentStore,
        records: PatientRecordStore,
        gate: AccessControlGate,
    ):
        self.appointments = appointments
        self.records = records
        self.gate = gate

    async def dashboard(
        self,
        actor: Optional[CurrentUser] = None,
        today: Optional[date] = None,
    ) -> DashboardMetrics:
        if actor is not None:
            self.gate.require(actor.role, "dashboard:view")

        return compute_dashboard(
            await self.appointments.list(),
            await self.records.list(),
            today or clinic_today(),
        )
