# paytrack/exceptions.py
"""
Typed exceptions raised by PayTrack services.

    PayTrackError
    +-- ValidationError   (also ValueError)   bad / missing input, nothing written
    +-- NotFoundError     (also LookupError)  entity id does not exist
    +-- PersistenceError                      the store could not complete a write / read

Every class carries a machine readable ``code`` that the HTTP layer returns
as ``errorType``.
"""


from typing import Optional


class PayTrackError(Exception):
    code = "SYSTEM_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PayTrackError, ValueError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(PayTrackError, LookupError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(PayTrackError):
    code = "DATABASE_ERROR"

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
