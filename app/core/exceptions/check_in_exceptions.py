from fastapi import HTTPException, status


class InvalidPayload(HTTPException):
    def __init__(self, payload: str = ''):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            'Invalid QR payload. Please scan the code again.',
            None,
        )
        self.payload = payload


class NotFound(HTTPException):
    def __init__(self, payload: str):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f'No participant matches QR payload: {payload}',
            None,
        )
        self.payload = payload


class ParticipantNotFound(HTTPException):
    def __init__(self, participant_id: str):
        super().__init__(
            status.HTTP_404_NOT_FOUND, f'Participant not found: {participant_id}', None
        )
        self.participant_id = participant_id


class VolunteerNotFound(HTTPException):
    def __init__(self, volunteer_id: str):
        super().__init__(
            status.HTTP_404_NOT_FOUND, f'Volunteer not found: {volunteer_id}', None
        )
        self.volunteer_id = volunteer_id


class DuplicateRegistration(HTTPException):
    def __init__(self, resource: str, field: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f'It already exists a {resource} with this {field}',
            None,
        )
        self.resource = resource
        self.field = field
