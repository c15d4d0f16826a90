from sqlalchemy import Column, Integer, String, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
import enum

from ..core.database import Base

class WalkInPriority(str, enum.Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    ROUTINE = "routine"

class WalkInStatus(str, enum.Enum):
    WAITING = "waiting"
    IN_SERVICE = "in-service"
    DONE = "done"

class WalkInEntry(Base):
    __tablename__ = "walk_in_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Contact information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=False)

    # Visit details; no dentist means "next available"
    service = Column(String(255), nullable=False)
    dentist_id = Column(String(64), nullable=True)
    priority = Column(SQLEnum(WalkInPriority), default=WalkInPriority.NORMAL, nullable=False)
    notes = Column(Text, nullable=True)

    arrived_at = Column(DateTime, nullable=False, index=True)
    status = Column(SQLEnum(WalkInStatus), default=WalkInStatus.WAITING, nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<WalkInEntry(id={self.id}, priority='{self.priority}', status='{self.status}')>"
