"""Domain errors raised by the short URL manager.

Every error carries a stable ``kind`` and the HTTP status the API maps it to,
so the boundary layer never has to inspect messages.

Classes:
    ShortUrlError: base class.
    UrlNotFoundError: no record for the code (or not active where required).
    CodeConflictError: the candidate code is already taken.
    InvalidInputError: malformed URL, blank required field, bad code.
    StorageFailureError: the store is unreachable or failed unexpectedly.
"""

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CODE_CONFLICT = "code_conflict"
    INVALID_INPUT = "invalid_input"
    STORAGE_FAILURE = "storage_failure"


class ShortUrlError(Exception):
    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UrlNotFoundError(ShortUrlError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, code: str):
        super().__init__(f"No short URL found for code '{code}'")
        self.code = code


class CodeConflictError(ShortUrlError):
    kind = ErrorKind.CODE_CONFLICT
    status_code = 409

    def __init__(self, code: str):
        super().__init__(f"Code '{code}' is already in use")
        self.code = code


class InvalidInputError(ShortUrlError):
    """Raised for input that fails validation.

    ``errors`` holds field-level messages in ``"field: problem"`` form.
    """

    kind = ErrorKind.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class StorageFailureError(ShortUrlError):
    kind = ErrorKind.STORAGE_FAILURE
    status_code = 500
