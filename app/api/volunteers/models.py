from sqlalchemy import Column, DateTime, Integer, String

from app.core.database import Base
from app.core.utils import current_time


class Volunteer(Base):
    __tablename__ = 'volunteers'

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
    volunteer_id = Column(String, nullable=False)
    registered_at = Column(DateTime, nullable=False, default=current_time)
