"""
Errors raised by the controllers.

Every error surfaces to the immediate caller; the HTTP layer turns them into
an ErrorResponseModel with the matching status code.
"""


class EventEaseError(Exception):
    status_code = 500
    title = "Unexpected error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.title)
        self.message = message or self.title


class NotFound(EventEaseError):
    status_code = 404
    title = "Not found"


class CapacityExceeded(EventEaseError):
    status_code = 409
    title = "Event has reached maximum capacity"


class ValidationError(EventEaseError):
    status_code = 400
    title = "Invalid data"


class RegistrationClosed(ValidationError):
    title = "Registration deadline has passed"


class AuthRequired(EventEaseError):
    status_code = 401
    title = "Authentication required"


class Forbidden(EventEaseError):
    status_code = 403
    title = "Not allowed"


class BackendUnavailable(EventEaseError):
    status_code = 503
    title = "Storage backend unavailable"


def validation_error_from(exc) -> ValidationError:
    """Collapse a pydantic validation error into a single ValidationError."""
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location}: {err['msg']}" if location else err["msg"])
    return ValidationError("; ".join(details))
