"""
In-process stores backed by ordered dictionaries.

No method awaits between reading and writing a row, so each call is atomic
on the event loop. Rows are returned as copies; callers never hold a
reference into the table.
"""

import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from ..core.errors import Conflict, NotFound
from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from ..models.walk_in import WalkInStatus
from ..schemas.appointment import AppointmentRead
from ..schemas.record import RecordRead
from ..schemas.user import UserRead
from ..schemas.walk_in import WalkInRead
from .base import AppointmentStore, PatientRecordStore, UserStore, WalkInStore


class _Table:
    """Insertion-ordered rows keyed by a generated integer id."""

    def __init__(self, model: Type[BaseModel], label: str):
        self.model = model
        self.label = label
        self.rows: Dict[Any, BaseModel] = {}
        self._ids = itertools.count(1)

    def insert(self, values: Dict[str, Any]) -> BaseModel:
        row = self.model(id=next(self._ids), **values)
        self.rows[row.id] = row
        return row.model_copy()

    def get(self, key) -> Optional[BaseModel]:
        row = self.rows.get(key)
        return row.model_copy() if row is not None else None

    def require(self, key) -> BaseModel:
        row = self.rows.get(key)
        if row is None:
            raise NotFound(f"{self.label} {key} not found")
        return row

    def all(self) -> List[BaseModel]:
        return [row.model_copy() for row in self.rows.values()]

    def replace(self, key, **changes) -> BaseModel:
        row = self.require(key).model_copy(update=changes)
        self.rows[key] = row
        return row.model_copy()

    def compare_and_set_status(self, key, expected, new) -> BaseModel:
        row = self.require(key)
        if row.status != expected:
            raise Conflict(
                f"{self.label} {key} is {row.status.value}, expected {expected.value}"
            )
        return self.replace(key, status=new)


class InMemoryUserStore(UserStore):
    def __init__(self):
        self.rows: Dict[str, UserRead] = {}

    async def add(self, values: Dict[str, Any]) -> UserRead:
        user = UserRead(**values)
        self.rows[user.id] = user
        return user.model_copy()

    async def get(self, user_id: str) -> Optional[UserRead]:
        user = self.rows.get(user_id)
        return user.model_copy() if user is not None else None

    async def list(self, role: Optional[UserRole] = None) -> List[UserRead]:
        return [
            user.model_copy() for user in self.rows.values()
            if role is None or user.role == role
        ]


class InMemoryAppointmentStore(AppointmentStore):
    def __init__(self):
        self.table = _Table(AppointmentRead, "Appointment")

    async def create(self, values: Dict[str, Any]) -> AppointmentRead:
        values = dict(values)
        values.setdefault("status", AppointmentStatus.SCHEDULED)
        values.setdefault("created_at", datetime.now(timezone.utc).replace(tzinfo=None))
        return self.table.insert(values)

    async def get(self, appointment_id: int) -> Optional[AppointmentRead]:
        return self.table.get(appointment_id)

    async def list(self) -> List[AppointmentRead]:
        return self.table.all()

    async def update_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new: AppointmentStatus,
    ) -> AppointmentRead:
        return self.table.compare_and_set_status(appointment_id, expected, new)

    async def delete(self, appointment_id: int) -> None:
        self.table.require(appointment_id)
        del self.table.rows[appointment_id]


class InMemoryPatientRecordStore(PatientRecordStore):
    def __init__(self):
        self.table = _Table(RecordRead, "Patient record")

    async def create(self, values: Dict[str, Any]) -> RecordRead:
        return self.table.insert(values)

    async def get(self, record_id: int) -> Optional[RecordRead]:
        return self.table.get(record_id)

    async def list(self) -> List[RecordRead]:
        return self.table.all()

    async def update(self, record_id: int, changes: Dict[str, Any]) -> RecordRead:
        return self.table.replace(record_id, **changes)


class InMemoryWalkInStore(WalkInStore):
    def __init__(self):
        self.table = _Table(WalkInRead, "Walk-in entry")

    async def create(self, values: Dict[str, Any]) -> WalkInRead:
        values = dict(values)
        values.setdefault("status", WalkInStatus.WAITING)
        return self.table.insert(values)

    async def get(self, entry_id: int) -> Optional[WalkInRead]:
        return self.table.get(entry_id)

    async def list(self, status: Optional[WalkInStatus] = None) -> List[WalkInRead]:
        return [
            entry for entry in self.table.all()
            if status is None or entry.status == status
        ]

    async def update_status(
        self,
        entry_id: int,
        expected: WalkInStatus,
        new: WalkInStatus,
    ) -> WalkInRead:
        return self.table.compare_and_set_status(entry_id, expected, new)
