from enum import Enum


class ErrorType(str, Enum):
    '''
    Structured classification of a failed user action.

    INPUT_ERROR: the request itself is malformed (unknown status, bad id format).
    VALIDATION_ERROR: required input missing or invalid; nothing was written.
    NOT_FOUND: the target entity does not exist.
    DATABASE_ERROR: the store rejected or could not complete a write. Never retried.
    PARTIAL_FAILURE: a batch write committed only some of its items.
    SYSTEM_ERROR: anything unclassified.
    '''
    INPUT_ERROR = "INPUT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    DATABASE_ERROR = "DATABASE_ERROR"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    SYSTEM_ERROR = "SYSTEM_ERROR"
