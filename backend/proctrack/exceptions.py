"""Custom exception hierarchy for ProcTrack."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Location errors
    SHELF_NOT_FOUND = "SHELF_NOT_FOUND"
    CABINET_NOT_FOUND = "CABINET_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"

    # Record errors
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PENDING_ACTION_NOT_FOUND = "PENDING_ACTION_NOT_FOUND"

    # User errors
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PROTECTED_ACCOUNT = "PROTECTED_ACCOUNT"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    CONFLICT = "CONFLICT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ProcTrackException(Exception):
    """
    Base exception for all ProcTrack errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class ShelfNotFoundError(ProcTrackException):
    """Shelf not found in database."""

    def __init__(self, shelf_id: str):
        super().__init__(
            f"Shelf not found: {shelf_id}",
            ErrorCode.SHELF_NOT_FOUND,
            status_code=404,
            details={"shelf_id": shelf_id}
        )


class CabinetNotFoundError(ProcTrackException):
    """Cabinet not found in database."""

    def __init__(self, cabinet_id: str):
        super().__init__(
            f"Cabinet not found: {cabinet_id}",
            ErrorCode.CABINET_NOT_FOUND,
            status_code=404,
            details={"cabinet_id": cabinet_id}
        )


class FolderNotFoundError(ProcTrackException):
    """Folder not found in database."""

    def __init__(self, folder_id: str):
        super().__init__(
            f"Folder not found: {folder_id}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=404,
            details={"folder_id": folder_id}
        )


class RecordNotFoundError(ProcTrackException):
    """Procurement record not found in database."""

    def __init__(self, record_id: str):
        super().__init__(
            f"Record not found: {record_id}",
            ErrorCode.RECORD_NOT_FOUND,
            status_code=404,
            details={"record_id": record_id}
        )


class UserNotFoundError(ProcTrackException):
    """User account not found in database."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"user_id": user_id}
        )


class PendingActionNotFoundError(ProcTrackException):
    """Status change token is unknown, finished, or expired."""

    def __init__(self, token: str):
        super().__init__(
            "Status change not found or expired",
            ErrorCode.PENDING_ACTION_NOT_FOUND,
            status_code=404,
            details={"token": token}
        )


class ValidationError(ProcTrackException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class UserValidationError(ValidationError):
    """One or more account rules failed. All reasons are reported."""

    def __init__(self, reasons: List[str]):
        super().__init__(reasons[0] if reasons else "Invalid user")
        self.reasons = list(reasons)
        self.details = {"reasons": self.reasons}


class InvalidTransitionError(ProcTrackException):
    """Requested status change is not allowed from the record's current state."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        details = {"record_id": record_id} if record_id else {}
        super().__init__(
            message,
            ErrorCode.INVALID_TRANSITION,
            status_code=400,
            details=details
        )


class ProtectedAccountError(ProcTrackException):
    """Operation would delete or disable the primordial admin account."""

    def __init__(self, message: str):
        super().__init__(
            message,
            ErrorCode.PROTECTED_ACCOUNT,
            status_code=400,
        )


class AuthenticationError(ProcTrackException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(ProcTrackException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(ProcTrackException):
    """Write conflicts with existing data (duplicate email, non-empty location)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class DatabaseError(ProcTrackException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
