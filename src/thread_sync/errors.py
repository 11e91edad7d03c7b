"""Error types and user-facing error descriptions for thread_sync.

TransportError is the only error kind the synchronization core surfaces.
describe_error() turns one into the title/description/technical/actions
breakdown shown to operators through the notification sink.
"""

from dataclasses import dataclass, field

import httpx

__all__ = [
    "TransportError",
    "ErrorDetails",
    "describe_error",
    "status_message",
]


class TransportError(Exception):
    """A messaging API call failed.

    Attributes:
        cause: Underlying exception (connection error, decode error, ...)
        status: HTTP status code when the server answered
        status_text: HTTP reason phrase when the server answered
        url: Request URL
        method: HTTP method
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        status: int | None = None,
        status_text: str | None = None,
        url: str | None = None,
        method: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status = status
        self.status_text = status_text
        self.url = url
        self.method = method

    @property
    def is_connection_error(self) -> bool:
        """True when the server could not be reached."""
        return self.status is None and isinstance(self.cause, httpx.TransportError | OSError)


_STATUS_MESSAGES: dict[int, str] = {
    400: "The request was invalid. Please check your input",
    401: "Authentication required. Please sign in again",
    403: "You don't have permission to perform this action",
    404: "The requested resource was not found",
    408: "The request timed out. Please try again",
    409: "The request conflicts with the current state of the resource",
    422: "The submitted data could not be processed",
    429: "Too many requests. Please wait a moment and try again",
    500: "Server error. Please try again later",
    502: "The server is temporarily unavailable",
    503: "The service is temporarily unavailable",
    504: "The server took too long to respond",
}

_STATUS_ACTIONS: dict[int, list[str]] = {
    401: ["Sign in again", "Check that your API key is still valid"],
    403: ["Verify your permissions for this tenant", "Contact an administrator"],
    404: ["Refresh the thread list", "Check that the thread still exists"],
    429: ["Wait a moment before retrying"],
}


def status_message(status: int | None) -> str:
    """Return the generic user message for an HTTP status."""
    if status is None:
        return "An unexpected error occurred"
    if status in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status]
    if status >= 500:
        return _STATUS_MESSAGES[500]
    return f"Request failed with status {status}"


def _status_actions(status: int) -> list[str]:
    if status in _STATUS_ACTIONS:
        return list(_STATUS_ACTIONS[status])
    if status >= 500:
        return ["Try again in a few minutes", "Contact support if the issue persists"]
    return []


@dataclass(frozen=True)
class ErrorDetails:
    """User-facing breakdown of a failed operation."""

    title: str
    description: str
    technical: str
    actions: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """One-line text for the notification sink."""
        return f"{self.title}: {self.description}"


def describe_error(error: BaseException, title: str = "") -> ErrorDetails:
    """Build user-facing details for an error.

    Args:
        error: The failure, usually a TransportError
        title: Operation-specific title (e.g. "Failed to load more messages.")

    Returns:
        ErrorDetails with description, technical details and suggested actions
    """
    title = title or "Error"

    if not isinstance(error, TransportError):
        return ErrorDetails(
            title=title,
            description=str(error) or "An unexpected error occurred",
            technical=type(error).__name__,
        )

    actions: list[str] = []
    if error.is_connection_error:
        description = "Unable to connect to the server. Please check your connection."
        actions = [
            "Check your network connection",
            "Verify the server is accessible",
            "Try again in a moment",
        ]
    elif error.message:
        description = error.message
    else:
        description = status_message(error.status)

    parts = [f"Status: {error.status}" if error.status is not None else "Client error"]
    if error.status_text:
        parts.append(error.status_text)
    if error.url:
        parts.append(f"URL: {error.url}")
    if error.method:
        parts.append(f"Method: {error.method}")
    if error.is_connection_error:
        parts[0] = type(error.cause).__name__

    if error.status is not None:
        actions.extend(_status_actions(error.status))

    return ErrorDetails(
        title=title,
        description=description,
        technical=" | ".join(parts),
        actions=actions,
    )
