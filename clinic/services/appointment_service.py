import logging
import re
from typing import Callable, Iterator, List, Optional, Union

from ..core.errors import AccessDenied, NotFound, ValidationError
from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from ..schemas.appointment import AppointmentRead, BookingRequest
from ..schemas.user import CurrentUser, UserRead
from ..stores.base import AppointmentStore, UserStore
from .access_control import AccessControlGate
from .state_machine import AppointmentStateMachine

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DENTIST_ROLES = (UserRole.DENTIST, UserRole.ADMIN)


class AppointmentSelection:
    """A restartable, lazy view over an appointment snapshot.

    Each iteration walks the snapshot again in insertion order and yields
    the appointments that match; nothing is filtered up front.
    """

    def __init__(
        self,
        snapshot: List[AppointmentRead],
        predicate: Callable[[AppointmentRead], bool],
    ):
        self._snapshot = snapshot
        self._predicate = predicate

    def __iter__(self) -> Iterator[AppointmentRead]:
        return (appointment for appointment in self._snapshot if self._predicate(appointment))

    def __len__(self) -> int:
        return sum(1 for _ in self)


def _parse_filter(status: Union[str, AppointmentStatus]) -> Optional[AppointmentStatus]:
    if status == ALL_STATUSES:
        return None
    try:
        return AppointmentStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown status filter: {status!r}")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class AppointmentService:
    """Booking workflow and appointment queries."""

    def __init__(
        self,
        store: AppointmentStore,
        users: UserStore,
        gate: AccessControlGate,
        state_machine: AppointmentStateMachine,
    ):
        self.store = store
        self.users = users
        self.gate = gate
        self.state_machine = state_machine

    async def book_appointment(
        self,
        details: BookingRequest,
        actor: Optional[CurrentUser] = None,
    ) -> AppointmentRead:
        """Create a scheduled appointment.

        The patient is the acting patient, a registered patient named by
        staff, or an anonymous visitor identified by contact details. All
        checks run before the single store write.
        """
        if actor is not None:
            self.gate.require(actor.role, "appointment:book")

        if _blank(details.service):
            raise ValidationError("Service is required")
        if details.date is None:
            raise ValidationError("Date is required")
        if _blank(details.time):
            raise ValidationError("Time is required")
        if not TIME_PATTERN.match(details.time.strip()):
            raise ValidationError(f"Time must be HH:MM, got {details.time!r}")

        values = await self._resolve_patient(details, actor)
        values.update(await self._resolve_dentist(details.dentist_id))
        values.update(
            service=details.service.strip(),
            date=details.date,
            time=details.time.strip(),
            status=AppointmentStatus.SCHEDULED,
            notes=details.notes,
        )

        appointment = await self.store.create(values)
        logger.info(
            f"Booked appointment {appointment.id} for {appointment.date} {appointment.time} "
            f"({'anonymous' if appointment.is_anonymous else appointment.patient_id})"
        )
        return appointment

    async def _resolve_patient(self, details: BookingRequest, actor: Optional[CurrentUser]) -> dict:
        if actor is not None and actor.role == UserRole.PATIENT:
            patient = await self.users.get(actor.id)
            return {
                "patient_id": actor.id,
                "patient_name": actor.name,
                "contact": _contact_of(patient) or details.contact,
                "is_anonymous": False,
            }

        if details.patient_id:
            # Only a signed-in clinic team member may book for a registered patient
            if actor is None:
                raise ValidationError("Bookings without an account cannot name a patient")
            patient = await self.users.get(details.patient_id)
            if patient is None or patient.role != UserRole.PATIENT:
                raise ValidationError(f"Unknown patient: {details.patient_id}")
            return {
                "patient_id": patient.id,
                "patient_name": patient.name,
                "contact": _contact_of(patient),
                "is_anonymous": False,
            }

        for value, label in (
            (details.first_name, "First name"),
            (details.last_name, "Last name"),
            (details.contact, "Contact"),
        ):
            if _blank(value):
                raise ValidationError(f"{label} is required for bookings without an account")

        return {
            "patient_id": None,
            "patient_name": f"{details.first_name.strip()} {details.last_name.strip()}",
            "contact": details.contact.strip(),
            "is_anonymous": True,
        }

    async def _resolve_dentist(self, dentist_id: Optional[str]) -> dict:
        if not dentist_id or dentist_id == "next-available":
            return {"dentist_id": None, "dentist_name": None}

        dentist = await self.users.get(dentist_id)
        if dentist is None or dentist.role not in DENTIST_ROLES:
            raise ValidationError(f"Unknown dentist: {dentist_id}")
        return {"dentist_id": dentist.id, "dentist_name": dentist.name}

    async def get_appointment(self, appointment_id: int, actor: CurrentUser) -> AppointmentRead:
        appointment = await self.store.get(appointment_id)
        if appointment is None or not self._visible_to(actor)(appointment):
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    async def update_status(
        self,
        appointment_id: int,
        target_status,
        actor: CurrentUser,
        expected_status: Optional[AppointmentStatus] = None,
    ) -> AppointmentRead:
        return await self.state_machine.transition(
            appointment_id,
            target_status,
            actor.role,
            actor_id=actor.id,
            expected_status=expected_status,
        )

    async def delete_appointment(self, appointment_id: int, actor: CurrentUser) -> None:
        """Hard-delete an appointment; unknown ids raise ``NotFound``."""
        self.gate.require(actor.role, "appointment:delete")
        await self.store.delete(appointment_id)
        logger.info(f"Deleted appointment {appointment_id}")

    async def filter_by_status(
        self,
        status: Union[str, AppointmentStatus] = ALL_STATUSES,
        actor: Optional[CurrentUser] = None,
    ) -> AppointmentSelection:
        wanted = _parse_filter(status)
        visible = self._visible_to(actor)
        snapshot = await self.store.list()
        return AppointmentSelection(
            snapshot,
            lambda appointment: visible(appointment) and (wanted is None or appointment.status == wanted),
        )

    def _visible_to(self, actor: Optional[CurrentUser]) -> Callable[[AppointmentRead], bool]:
        if actor is None or self.gate.can_perform(actor.role, "appointment:view-all"):
            return lambda appointment: True
        if actor.role == UserRole.PATIENT:
            return lambda appointment: appointment.patient_id == actor.id
        raise AccessDenied(f"Role {actor.role.value} may not view appointments")


def _contact_of(user: Optional[UserRead]) -> Optional[str]:
    if user is None:
        return None
    return user.email or user.phone
