"""Exceptions for verification and session flows.

- VerificationError: base for everything raised by this package
- VerificationUnavailableError: the model could not give a usable answer
  and the failure policy is ESCALATE
- SessionStateError: an operation is not allowed in the current state
- SessionNotFoundError: unknown or expired session id
"""


class VerificationError(Exception):
    """Base exception for verification and session errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class VerificationUnavailableError(VerificationError):
    """The verification model failed and the policy asks to escalate."""


class SessionStateError(VerificationError):
    """Operation not permitted in the current flow or session state."""


class SessionNotFoundError(VerificationError):
    """No live session with the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}", {"session_id": session_id})
        self.session_id = session_id
