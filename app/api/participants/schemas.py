from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.core.utils import normalize_timestamp


class ParticipantBase(BaseModel):
    name: str
    email: str
    college_id: str
    college: str
    phone: str


class ParticipantCreate(ParticipantBase):
    @field_validator('name', 'college', 'phone')
    @classmethod
    def validate_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('Field is required')
        return value

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.lower().strip()
        if not value:
            raise ValueError('Email is required')
        return value

    @field_validator('college_id')
    @classmethod
    def validate_college_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('College ID is required')
        return value


class Participant(ParticipantBase):
    id: str
    qr_code_payload: str
    registered_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('registered_at', mode='before')
    @classmethod
    def validate_registered_at(cls, value) -> datetime:
        return normalize_timestamp(value)


class ParticipantWithStatus(Participant):
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None


class ParticipantRegistered(ParticipantWithStatus):
    qr_code: str


class ParticipantFilter(BaseModel):
    email: Optional[str] = None
    college_id: Optional[str] = None
    college: Optional[str] = None
