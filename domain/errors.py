"""Typed errors for visit operations.

Each error carries a stable machine-readable `code`, the HTTP status the API
layer renders it with, and a user-facing message the UI can branch on.
"""


class VisitError(Exception):
    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(VisitError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class Forbidden(VisitError):
    code = "forbidden"
    status_code = 403
    default_message = "You don't have permission to perform this action"


class NotFound(VisitError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class NoMatch(NotFound):
    """Biometric registry did not return an acceptable match"""
    code = "no_match"
    default_message = "No match found"


class Conflict(VisitError):
    code = "conflict"
    status_code = 409
    default_message = "Visit is already processed"


class InvalidInput(VisitError):
    code = "invalid_input"
    status_code = 400
    default_message = "Invalid input"


class ServiceUnavailable(VisitError):
    code = "service_unavailable"
    status_code = 503
    default_message = "Face verification service unavailable"


class Internal(VisitError):
    """Unexpected failure; the details go to the log, not the response"""
    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred"


class StaleVisitStatus(Exception):
    """Raised by the visit store when a conditioned write finds another status"""

    def __init__(self, visit_id, expected_status):
        self.visit_id = visit_id
        self.expected_status = expected_status
        super().__init__(f"Visit {visit_id} is no longer {expected_status}")
