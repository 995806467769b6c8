from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.core.utils import normalize_timestamp


class VolunteerBase(BaseModel):
    name: str
    email: str


class VolunteerCreate(VolunteerBase):
    volunteer_id: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.lower().strip()
        if not value:
            raise ValueError('Email is required')
        return value


class Volunteer(VolunteerBase):
    id: str
    volunteer_id: str
    registered_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('registered_at', mode='before')
    @classmethod
    def validate_registered_at(cls, value) -> datetime:
        return normalize_timestamp(value)
