"""
Appointment status lifecycle.

``scheduled`` is the only non-terminal status; it may move once to
``completed``, ``cancelled`` or ``no-show``. Reaching ``completed`` makes
the visit eligible for a patient record but never creates one.
"""

import logging
from typing import Dict, FrozenSet, Optional

from ..core.errors import AccessDenied, Conflict, InvalidTransition, NotFound
from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from ..schemas.appointment import AppointmentRead
from ..stores.base import AppointmentStore
from .access_control import AccessControlGate

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Operation each target status requires
TARGET_OPERATIONS: Dict[AppointmentStatus, str] = {
    AppointmentStatus.COMPLETED: "appointment:complete",
    AppointmentStatus.CANCELLED: "appointment:cancel",
    AppointmentStatus.NO_SHOW: "appointment:mark-no-show",
}


def _parse_target(value) -> Optional[AppointmentStatus]:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(value)
    except ValueError:
        return None


def allowed_transitions(status: AppointmentStatus) -> FrozenSet[AppointmentStatus]:
    return TRANSITIONS[status]


def is_legal(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in TRANSITIONS[current]


class AppointmentStateMachine:
    def __init__(self, store: AppointmentStore, gate: AccessControlGate):
        self.store = store
        self.gate = gate

    async def transition(
        self,
        appointment_id: int,
        target_status,
        actor_role: UserRole,
        actor_id: Optional[str] = None,
        expected_status: Optional[AppointmentStatus] = None,
    ) -> AppointmentRead:
        """Move an appointment to ``target_status``.

        The permission check runs first, then the legality check against
        the stored status, then a compare-and-set write. Targets without an
        operation (``scheduled`` or an unknown status) still require the actor
        to hold some status operation and, for patients, to own the
        appointment before they are rejected as invalid. A caller that read
        the appointment earlier may pass ``expected_status``; if the stored
        status has moved on since, the change is rejected with ``Conflict``
        instead of overwriting it.
        """
        target = _parse_target(target_status)
        operation = TARGET_OPERATIONS.get(target)
        if operation is not None:
            self.gate.require(actor_role, operation)
        elif not any(self.gate.can_perform(actor_role, op) for op in TARGET_OPERATIONS.values()):
            raise AccessDenied(
                f"Role {getattr(actor_role, 'value', actor_role)} may not change appointment status"
            )

        appointment = await self.store.get(appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found")

        if actor_role == UserRole.PATIENT and appointment.patient_id != actor_id:
            raise AccessDenied("Patients may only change their own appointments")

        if target is None:
            raise InvalidTransition(f"Unknown appointment status: {target_status!r}")
        if operation is None:
            raise InvalidTransition(
                f"Appointments cannot be moved to {target.value}"
            )

        current = appointment.status
        if expected_status is not None and expected_status != current:
            raise Conflict(
                f"Appointment {appointment_id} is {current.value}, "
                f"expected {expected_status.value}"
            )

        if not is_legal(current, target):
            raise InvalidTransition(
                f"Cannot move appointment {appointment_id} from {current.value} to {target.value}"
            )

        updated = await self.store.update_status(appointment_id, current, target)
        logger.info(
            f"Appointment {appointment_id}: {current.value} -> {target.value} "
            f"by {getattr(actor_role, 'value', actor_role)}"
        )
        return updated
