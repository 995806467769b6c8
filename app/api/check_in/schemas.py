from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.api.participants.schemas import Participant
from app.core.utils import normalize_timestamp


class CheckEventKind(str, Enum):
    CHECK_IN = 'check-in'
    CHECK_OUT = 'check-out'


class CheckInStatus(str, Enum):
    OK = 'ok'
    ALREADY_CHECKED_IN = 'already_checked_in'
    PARTICIPANT_NOT_FOUND = 'participant_not_found'
    NOT_FOUND = 'not_found'
    INVALID_PAYLOAD = 'invalid_payload'


class CheckEvent(BaseModel):
    id: str
    participant_id: str
    volunteer_id: str
    kind: CheckEventKind
    at: datetime
    seq: int

    model_config = ConfigDict(from_attributes=True)

    @field_validator('at', mode='before')
    @classmethod
    def validate_at(cls, value) -> datetime:
        return normalize_timestamp(value)


class NewScan(BaseModel):
    payload: str
    volunteer_id: str

    @field_validator('volunteer_id')
    def validate_volunteer_id(cls, v):
        if not v or not v.strip():
            raise ValueError('Volunteer ID is required')
        return v.strip()


class NewParticipantAction(BaseModel):
    volunteer_id: str

    @field_validator('volunteer_id')
    def validate_volunteer_id(cls, v):
        if not v or not v.strip():
            raise ValueError('Volunteer ID is required')
        return v.strip()


class CheckInResult(BaseModel):
    status: CheckInStatus
    participant: Optional[Participant] = None
    event: Optional[CheckEvent] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == CheckInStatus.OK


class ParticipantStatus(BaseModel):
    participant_id: str
    checked_in: bool
    latest_event: Optional[CheckEvent] = None
