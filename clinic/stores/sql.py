"""
SQLAlchemy-backed stores.

Session work is synchronous and runs in Starlette's threadpool. Each
mutation is a single transaction: it either commits as a whole or is rolled
back when the session closes.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.database import SessionLocal
from ..core.errors import Conflict, NotFound
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.patient_record import PatientRecord
from ..models.user import User
from ..models.walk_in import WalkInEntry, WalkInStatus
from ..schemas.appointment import AppointmentRead
from ..schemas.record import RecordRead
from ..schemas.user import UserRead
from ..schemas.walk_in import WalkInRead
from .base import AppointmentStore, PatientRecordStore, UserStore, WalkInStore
from .resilience import resilient


class SqlStore:
    """Shared session handling and retry settings for the SQL stores."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        timeout: float = settings.STORE_TIMEOUT_SECONDS,
        max_retries: int = settings.STORE_MAX_RETRIES,
        backoff: float = settings.STORE_RETRY_BACKOFF_SECONDS,
    ):
        self.session_factory = session_factory
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff

    async def run(self, func, *args):
        return await run_in_threadpool(func, *args)

    def _insert(self, model, schema, values: Dict[str, Any]):
        with self.session_factory() as db:
            row = model(**values)
            db.add(row)
            db.commit()
            db.refresh(row)
            return schema.model_validate(row)

    def _get(self, model, schema, key):
        with self.session_factory() as db:
            row = db.query(model).filter(model.id == key).first()
            return schema.model_validate(row) if row is not None else None

    def _compare_and_set_status(self, model, schema, label, key, expected, new):
        with self.session_factory() as db:
            updated = db.query(model).filter(
                model.id == key,
                model.status == expected
            ).update({"status": new}, synchronize_session=False)

            if not updated:
                current = db.query(model.status).filter(model.id == key).first()
                db.rollback()
                if current is None:
                    raise NotFound(f"{label} {key} not found")
                raise Conflict(
                    f"{label} {key} is {current.status.value}, expected {expected.value}"
                )

            db.commit()
            row = db.query(model).filter(model.id == key).first()
            return schema.model_validate(row)


class SqlUserStore(SqlStore, UserStore):
    @resilient(idempotent=False)
    async def add(self, values: Dict[str, Any]) -> UserRead:
        return await self.run(self._insert, User, UserRead, values)

    @resilient()
    async def get(self, user_id: str) -> Optional[UserRead]:
        return await self.run(self._get, User, UserRead, user_id)

    @resilient()
    async def list(self, role: Optional[UserRole] = None) -> List[UserRead]:
        return await self.run(self._list, role)

    def _list(self, role):
        with self.session_factory() as db:
            query = db.query(User)
            if role is not None:
                query = query.filter(User.role == role)
            return [UserRead.model_validate(user) for user in query.order_by(User.created_at, User.id)]


class SqlAppointmentStore(SqlStore, AppointmentStore):
    @resilient(idempotent=False)
    async def create(self, values: Dict[str, Any]) -> AppointmentRead:
        return await self.run(self._insert, Appointment, AppointmentRead, values)

    @resilient()
    async def get(self, appointment_id: int) -> Optional[AppointmentRead]:
        return await self.run(self._get, Appointment, AppointmentRead, appointment_id)

    @resilient()
    async def list(self) -> List[AppointmentRead]:
        return await self.run(self._list)

    @resilient(idempotent=False)
    async def update_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new: AppointmentStatus,
    ) -> AppointmentRead:
        return await self.run(
            self._compare_and_set_status,
            Appointment, AppointmentRead, "Appointment",
            appointment_id, expected, new
        )

    @resilient(idempotent=False)
    async def delete(self, appointment_id: int) -> None:
        await self.run(self._delete, appointment_id)

    def _list(self):
        with self.session_factory() as db:
            rows = db.query(Appointment).order_by(Appointment.id).all()
            return [AppointmentRead.model_validate(row) for row in rows]

    def _delete(self, appointment_id):
        with self.session_factory() as db:
            deleted = db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).delete(synchronize_session=False)
            if not deleted:
                raise NotFound(f"Appointment {appointment_id} not found")
            db.commit()


class SqlPatientRecordStore(SqlStore, PatientRecordStore):
    @resilient(idempotent=False)
    async def create(self, values: Dict[str, Any]) -> RecordRead:
        return await self.run(self._insert, PatientRecord, RecordRead, values)

    @resilient()
    async def get(self, record_id: int) -> Optional[RecordRead]:
        return await self.run(self._get, PatientRecord, RecordRead, record_id)

    @resilient()
    async def list(self) -> List[RecordRead]:
        return await self.run(self._list)

    @resilient(idempotent=False)
    async def update(self, record_id: int, changes: Dict[str, Any]) -> RecordRead:
        return await self.run(self._update, record_id, changes)

    def _list(self):
        with self.session_factory() as db:
            rows = db.query(PatientRecord).order_by(PatientRecord.id).all()
            return [RecordRead.model_validate(row) for row in rows]

    def _update(self, record_id, changes):
        with self.session_factory() as db:
            record = db.query(PatientRecord).filter(PatientRecord.id == record_id).first()
            if record is None:
                raise NotFound(f"Patient record {record_id} not found")

            for field, value in changes.items():
                setattr(record, field, value)

            db.commit()
            db.refresh(record)
            return RecordRead.model_validate(record)


class SqlWalkInStore(SqlStore, WalkInStore):
    @resilient(idempotent=False)
    async def create(self, values: Dict[str, Any]) -> WalkInRead:
        return await self.run(self._insert, WalkInEntry, WalkInRead, values)

    @resilient()
    async def get(self, entry_id: int) -> Optional[WalkInRead]:
        return await self.run(self._get, WalkInEntry, WalkInRead, entry_id)

    @resilient()
    async def list(self, status: Optional[WalkInStatus] = None) -> List[WalkInRead]:
        return await self.run(self._list, status)

    @resilient(idempotent=False)
    async def update_status(
        self,
        entry_id: int,
        expected: WalkInStatus,
        new: WalkInStatus,
    ) -> WalkInRead:
        return await self.run(
            self._compare_and_set_status,
            WalkInEntry, WalkInRead, "Walk-in entry",
            entry_id, expected, new
        )

    def _list(self, status):
        with self.session_factory() as db:
            query = db.query(WalkInEntry)
            if status is not None:
                query = query.filter(WalkInEntry.status == status)
            return [WalkInRead.model_validate(entry) for entry in query.order_by(WalkInEntry.id)]
