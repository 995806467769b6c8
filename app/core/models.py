# Import all models here to ensure SQLAlchemy registers every table
from app.api.check_in.models import CheckEvent
from app.api.participants.models import Participant
from app.api.volunteers.models import Volunteer

# Re-export all models
__all__ = [
    'CheckEvent',
    'Participant',
    'Volunteer',
]
