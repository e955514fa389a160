"""Error models for the search pipeline"""

from enum import Enum
from typing import Optional
import uuid


class ErrorCode(str, Enum):
    """Error codes surfaced by the search pipeline"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_POSTAL_CODE = "INVALID_POSTAL_CODE"
    NO_LOCATION_PROVIDED = "NO_LOCATION_PROVIDED"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    DISCOVERY_FAILED = "DISCOVERY_FAILED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SEARCH_FAILED = "SEARCH_FAILED"


class ApplicationError(Exception):
    """Application error carrying a user-facing message"""
    def __init__(self, code: ErrorCode, message: str, retryable: bool = False, hint: Optional[str] = None, session_id: Optional[str] = None):
        self.error_id = str(uuid.uuid4())
        self.code = code
        self.message = message
        self.retryable = retryable
        self.hint = hint
        self.session_id = session_id
        super().__init__(self.message)

    def model_dump(self):
        """Return dict representation for API responses"""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "message": self.message,
            "hint": self.hint,
            "retryable": self.retryable,
            "session_id": self.session_id
        }

    @property
    def http_status(self) -> int:
        """Map error code to HTTP status"""
        mapping = {
            ErrorCode.VALIDATION_ERROR: 400,
            ErrorCode.INVALID_POSTAL_CODE: 400,
            ErrorCode.NO_LOCATION_PROVIDED: 400,
            ErrorCode.NOT_FOUND: 404,
            ErrorCode.GEOCODING_FAILED: 502,
            ErrorCode.DISCOVERY_FAILED: 502,
            ErrorCode.CONFIGURATION_ERROR: 500,
            ErrorCode.SEARCH_FAILED: 500,
        }
        return mapping.get(self.code, 500)


class ValidationError(ApplicationError):
    """Bad input; raised before any network call is attempted"""
    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR, hint: Optional[str] = None):
        super().__init__(code=code, message=message, retryable=False, hint=hint)


class ResolutionError(ApplicationError):
    """A postal code could not be turned into coordinates"""
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(code=ErrorCode.GEOCODING_FAILED, message=message, retryable=True)
        self.cause = cause


class DiscoveryError(ApplicationError):
    """Place search failed on transport or returned a non-success status"""
    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(
            code=ErrorCode.DISCOVERY_FAILED,
            message=message,
            retryable=True,
            hint="Store lookup is temporarily unavailable. Please try again.",
        )
        self.status = status
