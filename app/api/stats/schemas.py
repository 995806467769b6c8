from typing import List

from pydantic import BaseModel

from app.api.check_in.schemas import CheckEvent


class DashboardStats(BaseModel):
    total_registrations: int = 0
    total_checked_in: int = 0
    total_volunteers: int = 0
    check_in_rate: int = 0
    recent_check_ins: List[CheckEvent] = []
