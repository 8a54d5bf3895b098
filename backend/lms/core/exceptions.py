"""
Custom Exceptions for the University LMS
========================================

Every error a handler or dependency raises on purpose is an ``LMSError``.
The application registers a single handler for the base class which turns
it into ``{"error": message}`` with the error's HTTP status.

Usage:
    from lms.core.exceptions import NotFoundError, ConflictError

    if not course:
        raise NotFoundError("Course not found")
"""

from typing import Optional, Any, Dict, List


class LMSError(Exception):
    """Base exception for all LMS errors"""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.code = code or type(self).__name__.replace("Error", "").upper()
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


# ============================================
# Authentication (401)
# ============================================

class AuthenticationError(LMSError):
    """Request could not be authenticated"""
    status_code = 401
    default_message = "Authentication failed"


class MissingTokenError(AuthenticationError):
    default_message = "Access token required"


class InvalidTokenError(AuthenticationError):
    """Bad signature, wrong token type, or expired. Clients never learn which."""
    default_message = "Invalid access token"


class UserInactiveOrMissingError(AuthenticationError):
    default_message = "User not found or inactive"


class InvalidCredentialsError(AuthenticationError):
    default_message = "Invalid credentials"


# ============================================
# Authorization (403)
# ============================================

class AuthorizationError(LMSError):
    status_code = 403
    default_message = "Not authorized"


class InsufficientRoleError(AuthorizationError):
    default_message = "Insufficient permissions"


class NotEnrolledError(AuthorizationError):
    default_message = "You are not enrolled in this course"


class AccountInactiveError(AuthorizationError):
    default_message = "Your account is inactive. Please contact the SuperAdmin."


# ============================================
# Request / resource errors
# ============================================

class ValidationError(LMSError):
    """Malformed request body or a business rule the body violates"""
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class NotFoundError(LMSError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(LMSError):
    """Unique-constraint violation or a full section"""
    status_code = 409
    default_message = "Resource already exists"


class InternalError(LMSError):
    status_code = 500
