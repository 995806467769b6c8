from fastapi import HTTPException, status


class StoreUnavailable(HTTPException):
    def __init__(self, operation: str, detail=None):
        msg = f'The record store is unavailable ({operation}). Please retry.'
        if detail:
            msg = f'{msg} Error detail: {detail}'
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, msg, None)
        self.operation = operation
