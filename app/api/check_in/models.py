from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.core.database import Base
from app.core.utils import current_time


class CheckEvent(Base):
    """Append-only log of check-in and check-out actions."""

    __tablename__ = 'check_events'

    seq = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    id = Column(String, nullable=False, unique=True, index=True)
    participant_id = Column(
        String,
        ForeignKey('participants.id'),
        nullable=False,
        index=True,
    )
    volunteer_id = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    at = Column(DateTime, nullable=False, default=current_time)

    __table_args__ = (Index('ix_check_events_participant_at', 'participant_id', 'at'),)
