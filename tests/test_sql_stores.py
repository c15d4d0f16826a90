import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic.core.database import init_db
from clinic.core.errors import Conflict, NotFound
from clinic.core.security import UserRole
from clinic.models.appointment import AppointmentStatus
from clinic.models.walk_in import WalkInStatus
from clinic.schemas.walk_in import WalkInCreate
from clinic.services.clinic import build_sql_clinic

from .conftest import TODAY, USERS, appointment_values, arrival

@pytest.fixture
def sql_clinic():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield build_sql_clinic(TestingSessionLocal)
    engine.dispose()

@pytest.mark.anyio
class TestSqlAppointmentStore:

    async def test_create_assigns_increasing_ids(self, sql_clinic):
        first = await sql_clinic.appointment_store.create(appointment_values())
        second = await sql_clinic.appointment_store.create(appointment_values(patient_id="p2"))

        assert second.id > first.id
        assert first.status == AppointmentStatus.SCHEDULED
        assert first.date == TODAY

    async def test_list_preserves_insertion_order(self, sql_clinic):
        created = [
            await sql_clinic.appointment_store.create(appointment_values(time=time))
            for time in ("15:30", "09:30", "11:30")
        ]

        listed = await sql_clinic.appointment_store.list()

        assert [a.id for a in listed] == [a.id for a in created]

    async def test_compare_and_set(self, sql_clinic):
        created = await sql_clinic.appointment_store.create(appointment_values())

        updated = await sql_clinic.appointment_store.update_status(
            created.id, AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED
        )
        assert updated.status == AppointmentStatus.CANCELLED

        with pytest.raises(Conflict):
            await sql_clinic.appointment_store.update_status(
                created.id, AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED
            )

    async def test_update_unknown(self, sql_clinic):
        with pytest.raises(NotFound):
            await sql_clinic.appointment_store.update_status(
                99, AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED
            )

    async def test_delete(self, sql_clinic):
        created = await sql_clinic.appointment_store.create(appointment_values())

        await sql_clinic.appointment_store.delete(created.id)

        assert await sql_clinic.appointment_store.get(created.id) is None
        with pytest.raises(NotFound):
            await sql_clinic.appointment_store.delete(created.id)

@pytest.mark.anyio
class TestSqlClinic:
    """The services run unchanged on the SQL stores."""

    async def test_state_machine(self, sql_clinic):
        created = await sql_clinic.appointment_store.create(appointment_values())

        updated = await sql_clinic.state_machine.transition(
            created.id, AppointmentStatus.NO_SHOW, UserRole.STAFF
        )

        assert updated.status == AppointmentStatus.NO_SHOW

    async def test_walk_in_queue(self, sql_clinic):
        for priority, at in (("routine", arrival(10, 0)), ("urgent", arrival(10, 5)), ("normal", arrival(10, 2))):
            await sql_clinic.walk_ins.enqueue(
                WalkInCreate(
                    first_name="Emma", last_name="Davis", phone="555-0199",
                    service="Consultation", priority=priority, arrived_at=at,
                ),
                UserRole.STAFF,
            )

        first = await sql_clinic.walk_ins.dequeue_next(UserRole.DENTIST)

        assert first.priority.value == "urgent"
        assert first.status == WalkInStatus.IN_SERVICE
        assert [e.priority.value for e in await sql_clinic.walk_ins.waiting()] == ["normal", "routine"]

    async def test_users_and_dashboard(self, sql_clinic):
        await sql_clinic.seed(
            users=USERS,
            appointments=[
                appointment_values(patient_id="p1", status=AppointmentStatus.COMPLETED),
                appointment_values(patient_id="p1"),
                appointment_values(patient_id="p2", status=AppointmentStatus.COMPLETED),
            ],
        )

        dentists = await sql_clinic.users.list(UserRole.DENTIST)
        metrics = await sql_clinic.aggregator.dashboard(today=TODAY)

        assert [d.id for d in dentists] == ["d1"]
        assert metrics.total_patients == 2
        assert metrics.completed_appointments == 2
        assert metrics.todays_appointments == 1
