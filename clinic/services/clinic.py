import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from ..core.config import settings
from ..stores.base import AppointmentStore, PatientRecordStore, UserStore, WalkInStore
from .access_control import AccessControlGate
from .aggregator import RecordAggregator
from .appointment_service import AppointmentService
from .record_service import PatientRecordService
from .state_machine import AppointmentStateMachine
from .walk_in_queue import WalkInQueueManager

logger = logging.getLogger(__name__)


@dataclass
class Clinic:
    """The engine's services wired to one set of stores."""
    users: UserStore
    appointment_store: AppointmentStore
    record_store: PatientRecordStore
    walk_in_store: WalkInStore
    gate: AccessControlGate
    state_machine: AppointmentStateMachine
    appointments: AppointmentService
    walk_ins: WalkInQueueManager
    records: PatientRecordService
    aggregator: RecordAggregator

    async def seed(
        self,
        users: Iterable[Dict[str, Any]] = (),
        appointments: Iterable[Dict[str, Any]] = (),
        records: Iterable[Dict[str, Any]] = (),
    ) -> None:
        """Load initial collections supplied by the persistence layer."""
        for values in users:
            await self.users.add(values)
        for values in appointments:
            await self.appointment_store.create(values)
        for values in records:
            await self.record_store.create(values)


def build_clinic(
    users: UserStore,
    appointment_store: AppointmentStore,
    record_store: PatientRecordStore,
    walk_in_store: WalkInStore,
    gate: Optional[AccessControlGate] = None,
) -> Clinic:
    gate = gate or AccessControlGate()
    state_machine = AppointmentStateMachine(appointment_store, gate)
    return Clinic(
        users=users,
        appointment_store=appointment_store,
        record_store=record_store,
        walk_in_store=walk_in_store,
        gate=gate,
        state_machine=state_machine,
        appointments=AppointmentService(appointment_store, users, gate, state_machine),
        walk_ins=WalkInQueueManager(walk_in_store, gate),
        records=PatientRecordService(record_store, appointment_store, users, gate),
        aggregator=RecordAggregator(appointment_store, record_store, gate),
    )


def build_memory_clinic() -> Clinic:
    from ..stores.memory import (
        InMemoryAppointmentStore, InMemoryPatientRecordStore,
        InMemoryUserStore, InMemoryWalkInStore,
    )

    return build_clinic(
        InMemoryUserStore(),
        InMemoryAppointmentStore(),
        InMemoryPatientRecordStore(),
        InMemoryWalkInStore(),
    )


def build_sql_clinic(session_factory=None) -> Clinic:
    from ..core.database import SessionLocal
    from ..stores.sql import (
        SqlAppointmentStore, SqlPatientRecordStore,
        SqlUserStore, SqlWalkInStore,
    )

    session_factory = session_factory or SessionLocal
    return build_clinic(
        SqlUserStore(session_factory),
        SqlAppointmentStore(session_factory),
        SqlPatientRecordStore(session_factory),
        SqlWalkInStore(session_factory),
    )


def build_configured_clinic(backend: Optional[str] = None) -> Clinic:
    backend = backend or settings.STORE_BACKEND
    logger.info(f"Using {backend} store backend")
    if backend == "memory":
        return build_memory_clinic()
    if backend == "sql":
        return build_sql_clinic()
    raise ValueError(f"Unknown store backend: {backend!r}")
