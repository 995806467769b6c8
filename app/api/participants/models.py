from sqlalchemy import Column, DateTime, Integer, String

from app.core.database import Base
from app.core.utils import current_time


class Participant(Base):
    __tablename__ = 'participants'

    seq = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    id = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    college_id = Column(String, nullable=False, unique=True, index=True)
    college = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    qr_code_payload = Column(String, nullable=False, index=True)
    registered_at = Column(DateTime, nullable=False, default=current_time)
