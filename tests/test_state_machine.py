import pytest

from clinic.core.errors import AccessDenied, Conflict, InvalidTransition, NotFound
from clinic.core.security import UserRole
from clinic.models.appointment import AppointmentStatus
from clinic.services.state_machine import allowed_transitions, is_legal

from .conftest import appointment_values

TERMINAL = [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW]

class TestTransitionTable:

    def test_scheduled_reaches_every_terminal_status(self):
        assert allowed_transitions(AppointmentStatus.SCHEDULED) == frozenset(TERMINAL)

    def test_terminal_statuses_have_no_exit(self):
        for status in TERMINAL:
            assert allowed_transitions(status) == frozenset()

    def test_legality_matches_table(self):
        for current in AppointmentStatus:
            for target in AppointmentStatus:
                expected = current == AppointmentStatus.SCHEDULED and target in TERMINAL
                assert is_legal(current, target) is expected

@pytest.mark.anyio
class TestTransition:

    @pytest.mark.parametrize("target", TERMINAL)
    async def test_scheduled_moves_to_terminal(self, clinic, target):
        appointment = await clinic.appointment_store.create(appointment_values())

        updated = await clinic.state_machine.transition(appointment.id, target, UserRole.ADMIN)

        assert updated.status == target
        assert (await clinic.appointment_store.get(appointment.id)).status == target

    @pytest.mark.parametrize("current", TERMINAL)
    @pytest.mark.parametrize("target", list(AppointmentStatus))
    async def test_terminal_status_never_moves(self, clinic, current, target):
        appointment = await clinic.appointment_store.create(appointment_values(status=current))

        with pytest.raises(InvalidTransition):
            await clinic.state_machine.transition(appointment.id, target, UserRole.ADMIN)

        assert (await clinic.appointment_store.get(appointment.id)).status == current

    async def test_scheduled_to_scheduled_is_invalid(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())

        with pytest.raises(InvalidTransition):
            await clinic.state_machine.transition(appointment.id, "scheduled", UserRole.ADMIN)

    async def test_unknown_status_is_invalid(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())

        with pytest.raises(InvalidTransition):
            await clinic.state_machine.transition(appointment.id, "rescheduled", UserRole.ADMIN)

    async def test_status_strings_are_accepted(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())

        updated = await clinic.state_machine.transition(appointment.id, "no-show", UserRole.STAFF)
        assert updated.status == AppointmentStatus.NO_SHOW

    async def test_permission_is_checked_before_legality(self, clinic):
        appointment = await clinic.appointment_store.create(
            appointment_values(status=AppointmentStatus.CANCELLED)
        )

        with pytest.raises(AccessDenied):
            await clinic.state_machine.transition(
                appointment.id, AppointmentStatus.COMPLETED, UserRole.PATIENT, actor_id="p1"
            )

    async def test_ownership_is_checked_before_unreachable_target(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values(patient_id="p1"))

        with pytest.raises(AccessDenied):
            await clinic.state_machine.transition(
                appointment.id, "scheduled", UserRole.PATIENT, actor_id="p2"
            )

    async def test_missing_role_is_denied_before_unknown_status(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())

        with pytest.raises(AccessDenied):
            await clinic.state_machine.transition(appointment.id, "rescheduled", None)

    async def test_owner_requesting_scheduled_is_invalid(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values(patient_id="p1"))

        with pytest.raises(InvalidTransition):
            await clinic.state_machine.transition(
                appointment.id, "scheduled", UserRole.PATIENT, actor_id="p1"
            )

    async def test_patient_cancels_own_appointment(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values(patient_id="p1"))

        updated = await clinic.state_machine.transition(
            appointment.id, AppointmentStatus.CANCELLED, UserRole.PATIENT, actor_id="p1"
        )
        assert updated.status == AppointmentStatus.CANCELLED

    async def test_patient_cannot_cancel_someone_elses(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values(patient_id="p1"))

        with pytest.raises(AccessDenied):
            await clinic.state_machine.transition(
                appointment.id, AppointmentStatus.CANCELLED, UserRole.PATIENT, actor_id="p2"
            )

    async def test_unknown_appointment(self, clinic):
        with pytest.raises(NotFound):
            await clinic.state_machine.transition(999, AppointmentStatus.COMPLETED, UserRole.ADMIN)

    async def test_stale_expected_status_conflicts(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())
        await clinic.state_machine.transition(appointment.id, AppointmentStatus.CANCELLED, UserRole.STAFF)

        with pytest.raises(Conflict):
            await clinic.state_machine.transition(
                appointment.id,
                AppointmentStatus.COMPLETED,
                UserRole.DENTIST,
                expected_status=AppointmentStatus.SCHEDULED,
            )

    async def test_store_compare_and_set_rejects_lost_update(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())
        await clinic.appointment_store.update_status(
            appointment.id, AppointmentStatus.SCHEDULED, AppointmentStatus.NO_SHOW
        )

        with pytest.raises(Conflict):
            await clinic.appointment_store.update_status(
                appointment.id, AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED
            )
        assert (await clinic.appointment_store.get(appointment.id)).status == AppointmentStatus.NO_SHOW

    async def test_completion_does_not_create_a_record(self, clinic):
        appointment = await clinic.appointment_store.create(appointment_values())

        await clinic.state_machine.transition(appointment.id, AppointmentStatus.COMPLETED, UserRole.DENTIST)

        assert await clinic.record_store.list() == []
