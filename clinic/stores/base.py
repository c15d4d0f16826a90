"""
Store interfaces.

The state machine, the walk-in queue and the aggregator only talk to these
abstract stores, so the in-memory implementation can be swapped for the
SQLAlchemy one (or any other database) without touching them.

Every method is a coroutine: a store call is an I/O boundary that may block,
time out or fail. Unknown ids raise ``NotFound``; a compare-and-set whose
expected status no longer matches raises ``Conflict``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.security import UserRole
from ..models.appointment import AppointmentStatus
from ..models.walk_in import WalkInStatus
from ..schemas.appointment import AppointmentRead
from ..schemas.record import RecordRead
from ..schemas.user import UserRead
from ..schemas.walk_in import WalkInRead


class UserStore(ABC):
    @abstractmethod
    async def add(self, values: Dict[str, Any]) -> UserRead: ...

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserRead]: ...

    @abstractmethod
    async def list(self, role: Optional[UserRole] = None) -> List[UserRead]: ...


class AppointmentStore(ABC):
    @abstractmethod
    async def create(self, values: Dict[str, Any]) -> AppointmentRead:
        """Insert a new appointment under a fresh unique id."""

    @abstractmethod
    async def get(self, appointment_id: int) -> Optional[AppointmentRead]: ...

    @abstractmethod
    async def list(self) -> List[AppointmentRead]:
        """Return every appointment in insertion order."""

    @abstractmethod
    async def update_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new: AppointmentStatus,
    ) -> AppointmentRead:
        """Set ``new`` only if the stored status is still ``expected``."""

    @abstractmethod
    async def delete(self, appointment_id: int) -> None: ...


class PatientRecordStore(ABC):
    @abstractmethod
    async def create(self, values: Dict[str, Any]) -> RecordRead: ...

    @abstractmethod
    async def get(self, record_id: int) -> Optional[RecordRead]: ...

    @abstractmethod
    async def list(self) -> List[RecordRead]: ...

    @abstractmethod
    async def update(self, record_id: int, changes: Dict[str, Any]) -> RecordRead: ...


class WalkInStore(ABC):
    @abstractmethod
    async def create(self, values: Dict[str, Any]) -> WalkInRead: ...

    @abstractmethod
    async def get(self, entry_id: int) -> Optional[WalkInRead]: ...

    @abstractmethod
    async def list(self, status: Optional[WalkInStatus] = None) -> List[WalkInRead]: ...

    @abstractmethod
    async def update_status(
        self,
        entry_id: int,
        expected: WalkInStatus,
        new: WalkInStatus,
    ) -> WalkInRead: ...
