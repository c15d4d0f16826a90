"""
Walk-in queue.

Waiting entries are ordered by priority rank (urgent before normal before
routine), then by arrival time. The entry id breaks exact timestamp ties,
so the order is always fully determined. The waiting set is re-sorted on
every read; at clinic scale that is tens of entries.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..core.errors import Conflict, InvalidTransition, NotFound, ValidationError
from ..core.security import UserRole
from ..models.walk_in import WalkInPriority, WalkInStatus
from ..schemas.walk_in import QueueEntry, WalkInCreate, WalkInRead
from ..stores.base import WalkInStore
from .access_control import AccessControlGate

logger = logging.getLogger(__name__)

PRIORITY_RANK: Dict[WalkInPriority, int] = {
    WalkInPriority.URGENT: 0,
    WalkInPriority.NORMAL: 1,
    WalkInPriority.ROUTINE: 2,
}

REQUIRED_FIELDS = (
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("phone", "Phone number"),
    ("service", "Service"),
)


def queue_key(entry: WalkInRead) -> Tuple[int, datetime, int]:
    return (PRIORITY_RANK[entry.priority], entry.arrived_at, entry.id)


def order_queue(entries: List[WalkInRead]) -> List[WalkInRead]:
    return sorted(entries, key=queue_key)


def _utc_naive(moment: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class WalkInQueueManager:
    def __init__(self, store: WalkInStore, gate: AccessControlGate):
        self.store = store
        self.gate = gate

    async def enqueue(self, details: WalkInCreate, actor_role: UserRole) -> WalkInRead:
        """Validate a walk-in arrival and add it to the waiting queue."""
        self.gate.require(actor_role, "walk-in:enqueue")

        values = {}
        for field, label in REQUIRED_FIELDS:
            value = (getattr(details, field) or "").strip()
            if not value:
                raise ValidationError(f"{label} is required")
            values[field] = value

        try:
            priority = WalkInPriority(details.priority)
        except ValueError:
            raise ValidationError(f"Unknown priority: {details.priority!r}")

        arrived_at = details.arrived_at or datetime.now(timezone.utc)
        # Empty or "next-available" means no specific dentist
        dentist_id = details.dentist_id
        if dentist_id in ("", "next-available"):
            dentist_id = None

        values.update(
            email=details.email or None,
            dentist_id=dentist_id,
            priority=priority,
            notes=details.notes,
            arrived_at=_utc_naive(arrived_at),
            status=WalkInStatus.WAITING,
        )
        entry = await self.store.create(values)
        logger.info(f"Walk-in {entry.id} queued with {priority.value} priority")
        return entry

    async def waiting(self, actor_role: Optional[UserRole] = None) -> List[WalkInRead]:
        """Return the waiting entries in queue order."""
        if actor_role is not None:
            self.gate.require(actor_role, "walk-in:view")
        return order_queue(await self.store.list(WalkInStatus.WAITING))

    async def queue(self, actor_role: UserRole) -> List[QueueEntry]:
        entries = await self.waiting(actor_role)
        return [
            QueueEntry(position=position, entry=entry)
            for position, entry in enumerate(entries, start=1)
        ]

    async def position(self, entry_id: int) -> Optional[int]:
        """Return the 1-based queue position, or None if not waiting."""
        for position, entry in enumerate(await self.waiting(), start=1):
            if entry.id == entry_id:
                return position
        return None

    async def dequeue_next(
        self,
        actor_role: UserRole,
        dentist_id: Optional[str] = None,
    ) -> Optional[WalkInRead]:
        """Take the head of the queue into service.

        With ``dentist_id`` only entries assigned to that dentist or to the
        next available one qualify. Returns None when nothing is waiting.
        An entry claimed concurrently by someone else is skipped, never
        dropped: it is already in service.
        """
        self.gate.require(actor_role, "walk-in:dequeue")

        for entry in await self.waiting():
            if dentist_id is not None and entry.dentist_id not in (None, dentist_id):
                continue
            try:
                taken = await self.store.update_status(
                    entry.id, WalkInStatus.WAITING, WalkInStatus.IN_SERVICE
                )
            except (Conflict, NotFound):
                logger.info(f"Walk-in {entry.id} was taken concurrently, trying next")
                continue
            logger.info(f"Walk-in {taken.id} moved into service")
            return taken

        return None

    async def complete(self, entry_id: int, actor_role: UserRole) -> WalkInRead:
        self.gate.require(actor_role, "walk-in:complete")

        entry = await self.store.get(entry_id)
        if entry is None:
            raise NotFound(f"Walk-in entry {entry_id} not found")
        if entry.status != WalkInStatus.IN_SERVICE:
            raise InvalidTransition(
                f"Walk-in entry {entry_id} is {entry.status.value}, not in service"
            )

        done = await self.store.update_status(
            entry_id, WalkInStatus.IN_SERVICE, WalkInStatus.DONE
        )
        logger.info(f"Walk-in {entry_id} done")
        return done
