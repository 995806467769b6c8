from datetime import timedelta, timezone

from app.core.store.base import Collection
from app.core.store.memory import InMemoryStore
from app.core.utils import current_time


def demo_data() -> dict:
    """Sample records for demo mode. Timestamps come in mixed shapes on purpose."""
    now = current_time()
    earlier = now - timedelta(minutes=30)
    return {
        Collection.PARTICIPANTS: [
            {
                'id': 'demo-1',
                'name': 'John Doe',
                'email': 'john@example.com',
                'college_id': 'CS001',
                'college': 'Demo University',
                'phone': '+1234567890',
                'qr_code_payload': 'demo-qr-1',
                'registered_at': earlier.isoformat(),
            },
            {
                'id': 'demo-2',
                'name': 'Jane Smith',
                'email': 'jane@example.com',
                'college_id': 'CS002',
                'college': 'Demo College',
                'phone': '+1234567891',
                'qr_code_payload': 'demo-qr-2',
                'registered_at': earlier,
            },
        ],
        Collection.VOLUNTEERS: [
            {
                'id': 'vol-1',
                'name': 'Alice Johnson',
                'email': 'alice@volunteer.com',
                'volunteer_id': 'vol-1',
                'registered_at': earlier,
            },
        ],
        Collection.CHECK_EVENTS: [
            {
                'id': 'checkin-1',
                'participant_id': 'demo-1',
                'volunteer_id': 'vol-1',
                'kind': 'check-in',
                'at': {
                    'seconds': (earlier + timedelta(minutes=5))
                    .replace(tzinfo=timezone.utc)
                    .timestamp()
                },
            },
        ],
    }


def create_demo_store() -> InMemoryStore:
    return InMemoryStore(initial_data=demo_data())
