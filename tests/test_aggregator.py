from datetime import date

import pytest

from clinic.core.security import UserRole
from clinic.models.appointment import AppointmentStatus
from clinic.schemas.appointment import AppointmentRead
from clinic.schemas.record import RecordRead
from clinic.schemas.user import CurrentUser
from clinic.services.aggregator import (
    completed_count, compute_dashboard, distinct_patient_count,
    recent_appointments, todays_scheduled_count, total_revenue
)

from .conftest import TODAY, appointment_values

def appointment(id, patient_id, status, on=TODAY):
    return AppointmentRead(id=id, **appointment_values(patient_id=patient_id, status=status, date=on))

def record(id, cost):
    return RecordRead(
        id=id, patient_id="p1", date=TODAY, treatment="Filling",
        diagnosis="Cavity", cost=cost,
    )

class TestMetrics:

    def test_patients_and_completed(self):
        appointments = [
            appointment(1, "p1", AppointmentStatus.COMPLETED),
            appointment(2, "p1", AppointmentStatus.SCHEDULED),
            appointment(3, "p2", AppointmentStatus.COMPLETED),
        ]

        assert distinct_patient_count(appointments) == 2
        assert completed_count(appointments) == 2

    def test_anonymous_bookings_are_not_patients(self):
        appointments = [
            appointment(1, "p1", AppointmentStatus.SCHEDULED),
            appointment(2, None, AppointmentStatus.SCHEDULED),
        ]
        assert distinct_patient_count(appointments) == 1

    def test_todays_scheduled_only(self):
        appointments = [
            appointment(1, "p1", AppointmentStatus.SCHEDULED),
            appointment(2, "p2", AppointmentStatus.COMPLETED),
            appointment(3, "p2", AppointmentStatus.SCHEDULED, on=date(2026, 10, 20)),
        ]
        assert todays_scheduled_count(appointments, TODAY) == 1

    def test_revenue(self):
        assert total_revenue([record(1, 150.0), record(2, 85.5)]) == pytest.approx(235.5)
        assert total_revenue([]) == 0.0

    def test_recent_appointments_limit(self):
        appointments = [appointment(i, "p1", AppointmentStatus.SCHEDULED) for i in range(1, 8)]
        assert [a.id for a in recent_appointments(appointments, 5)] == [1, 2, 3, 4, 5]

    def test_compute_dashboard(self):
        metrics = compute_dashboard(
            [appointment(1, "p1", AppointmentStatus.SCHEDULED)],
            [record(1, 200.0)],
            TODAY,
        )
        assert metrics.todays_appointments == 1
        assert metrics.total_patients == 1
        assert metrics.total_revenue == 200.0
        assert metrics.completed_appointments == 0

@pytest.mark.anyio
class TestRecordAggregator:

    async def test_reflects_mutations_immediately(self, clinic):
        admin = CurrentUser(id="a1", name="Alex Morgan", role=UserRole.ADMIN)
        created = await clinic.appointment_store.create(appointment_values())

        before = await clinic.aggregator.dashboard(admin, today=TODAY)
        await clinic.state_machine.transition(created.id, AppointmentStatus.COMPLETED, UserRole.ADMIN)
        after = await clinic.aggregator.dashboard(admin, today=TODAY)

        assert (before.todays_appointments, before.completed_appointments) == (1, 0)
        assert (after.todays_appointments, after.completed_appointments) == (0, 1)
