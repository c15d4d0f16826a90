import pytest

from clinic.core.errors import AccessDenied, NotFound, ValidationError
from clinic.core.security import UserRole
from clinic.models.appointment import AppointmentStatus
from clinic.schemas.record import RecordCreate, RecordUpdate
from clinic.schemas.user import CurrentUser

from .conftest import TODAY, appointment_values

DENTIST = CurrentUser(id="d1", name="Dr. Michael Chen", role=UserRole.DENTIST)
STAFF = CurrentUser(id="s1", name="Sam Rivera", role=UserRole.STAFF)

def new_record(**overrides):
    values = {
        "patient_id": "p1",
        "treatment": "Dental Cleaning",
        "diagnosis": "Mild plaque buildup",
        "cost": 120.0,
    }
    values.update(overrides)
    return RecordCreate(**values)

@pytest.mark.anyio
class TestCreateRecord:

    async def test_links_first_completed_visit(self, clinic):
        await clinic.appointment_store.create(appointment_values(status=AppointmentStatus.SCHEDULED))
        completed = await clinic.appointment_store.create(appointment_values(status=AppointmentStatus.COMPLETED))

        record = await clinic.records.create_record(new_record(), DENTIST, today=TODAY)

        assert record.appointment_id == completed.id
        assert record.patient_name == "Sarah Johnson"
        assert record.dentist_id == "d1"
        assert record.date == TODAY

    async def test_without_completed_visit(self, clinic):
        record = await clinic.records.create_record(new_record(), DENTIST)
        assert record.appointment_id is None

    async def test_explicit_appointment_must_be_completed(self, clinic):
        scheduled = await clinic.appointment_store.create(appointment_values())

        with pytest.raises(ValidationError):
            await clinic.records.create_record(new_record(appointment_id=scheduled.id), DENTIST)

    async def test_explicit_appointment_must_belong_to_patient(self, clinic):
        other = await clinic.appointment_store.create(
            appointment_values(patient_id="p2", status=AppointmentStatus.COMPLETED)
        )

        with pytest.raises(ValidationError):
            await clinic.records.create_record(new_record(appointment_id=other.id), DENTIST)

    async def test_negative_cost(self, clinic):
        with pytest.raises(ValidationError):
            await clinic.records.create_record(new_record(cost=-5.0), DENTIST)

    @pytest.mark.parametrize("field", ["patient_id", "treatment", "diagnosis"])
    async def test_required_fields(self, clinic, field):
        with pytest.raises(ValidationError):
            await clinic.records.create_record(new_record(**{field: None}), DENTIST)

    async def test_staff_cannot_create(self, clinic):
        with pytest.raises(AccessDenied):
            await clinic.records.create_record(new_record(), STAFF)

@pytest.mark.anyio
class TestEditAndSearch:

    async def test_edit(self, clinic):
        record = await clinic.records.create_record(new_record(), DENTIST)

        edited = await clinic.records.edit_record(record.id, RecordUpdate(cost=95.0, notes="Follow up in 6 months"), DENTIST)

        assert edited.cost == 95.0
        assert edited.notes == "Follow up in 6 months"
        assert edited.treatment == "Dental Cleaning"

    async def test_edit_rejects_negative_cost(self, clinic):
        record = await clinic.records.create_record(new_record(), DENTIST)

        with pytest.raises(ValidationError):
            await clinic.records.edit_record(record.id, RecordUpdate(cost=-1.0), DENTIST)

    async def test_edit_unknown_record(self, clinic):
        with pytest.raises(NotFound):
            await clinic.records.edit_record(77, RecordUpdate(notes="x"), DENTIST)

    async def test_search_by_treatment_or_patient(self, clinic):
        await clinic.records.create_record(new_record(), DENTIST)
        await clinic.records.create_record(new_record(patient_id="p2", treatment="Root Canal"), DENTIST)

        assert [r.treatment for r in await clinic.records.search_records("root", DENTIST)] == ["Root Canal"]
        assert [r.patient_id for r in await clinic.records.search_records("sarah", DENTIST)] == ["p1"]
        assert [r.patient_id for r in await clinic.records.search_records(None, DENTIST)] == ["p2", "p1"]
