"""Domain errors and user-facing error descriptions."""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError


class PollError(ValueError):
    """Base class for poll and vote failures."""

    status_code = 400
    code = "poll_error"
    title = "Error"


class PollValidationError(PollError):
    """Input rejected before any database call."""

    code = "validation_error"
    title = "Validation Error"


class PollNotFoundError(PollError):
    status_code = 404
    code = "poll_not_found"
    title = "Not Found"

    def __init__(self, message: str = "Poll not found"):
        super().__init__(message)


class PollPermissionError(PollError):
    status_code = 403
    code = "forbidden"
    title = "Not Allowed"


class PollClosedError(PollError):
    """Ballot submitted after the poll closed."""

    status_code = 409
    code = "poll_closed"
    title = "Poll Closed"

    def __init__(self, message: str = "Voting has ended for this poll"):
        super().__init__(message)


class StalePollVersionError(PollError):
    """Update based on an outdated copy of the poll."""

    status_code = 409
    code = "stale_version"
    title = "Poll Changed"

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Poll was modified by someone else (expected version {expected}, found {actual}). "
            "Reload and try again."
        )
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class ErrorMessage:
    """Title and description pair shown to the member."""

    title: str
    description: str


DEFAULT_ERROR_TITLE = "Error"
DEFAULT_ERROR_DESCRIPTION = "An unexpected error occurred. Please try again."

# PostgreSQL SQLSTATE codes surfaced by the database driver
SQLSTATE_MESSAGES = {
    "23505": "This item already exists.",
    "23503": "Cannot perform this operation due to related data.",
    "42501": "You do not have permission to perform this action.",
    "57014": "The request timed out. Please try again.",
}


def _sqlstate(exc: BaseException) -> Optional[str]:
    """Extract the SQLSTATE code from a DBAPI error, if the driver exposes one."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def describe_error(exc: Optional[BaseException], title: Optional[str] = None) -> ErrorMessage:
    """
    Map an exception to a member-facing title and description.

    Domain errors carry their own title and message. Database errors are
    mapped by SQLSTATE code, then by message pattern, with a generic
    fallback when nothing specific applies.

    Args:
        exc: The exception to describe (None yields the unknown-error message)
        title: Optional title overriding the derived one

    Returns:
        ErrorMessage with title and description
    """
    if exc is None:
        return ErrorMessage(title or DEFAULT_ERROR_TITLE, "An unknown error occurred.")

    if isinstance(exc, PollError):
        return ErrorMessage(title or exc.title, str(exc) or DEFAULT_ERROR_DESCRIPTION)

    if isinstance(exc, SQLAlchemyError):
        code = _sqlstate(exc)
        if code in SQLSTATE_MESSAGES:
            return ErrorMessage(title or DEFAULT_ERROR_TITLE, SQLSTATE_MESSAGES[code])
        if isinstance(exc, IntegrityError):
            message = str(exc.orig).lower() if exc.orig is not None else ""
            if "unique" in message:
                return ErrorMessage(title or DEFAULT_ERROR_TITLE, SQLSTATE_MESSAGES["23505"])
            return ErrorMessage(title or DEFAULT_ERROR_TITLE, SQLSTATE_MESSAGES["23503"])
        if isinstance(exc, OperationalError) or (isinstance(exc, DBAPIError) and exc.connection_invalidated):
            return ErrorMessage(
                title or DEFAULT_ERROR_TITLE,
                "The database is unreachable right now. Please try again in a moment.",
            )
        return ErrorMessage(title or DEFAULT_ERROR_TITLE, DEFAULT_ERROR_DESCRIPTION)

    message = str(exc).lower()
    if "permission" in message or "unauthorized" in message or "forbidden" in message:
        return ErrorMessage(title or DEFAULT_ERROR_TITLE, SQLSTATE_MESSAGES["42501"])
    if "timeout" in message or "timed out" in message:
        return ErrorMessage(title or DEFAULT_ERROR_TITLE, "The request took too long. Please try again.")
    if "network" in message or "connection" in message:
        return ErrorMessage(
            title or DEFAULT_ERROR_TITLE,
            "Network error. Please check your connection and try again.",
        )

    return ErrorMessage(title or DEFAULT_ERROR_TITLE, DEFAULT_ERROR_DESCRIPTION)
