"""
Exception classes raised by the content pipeline and the session state machine.

    ProviderFault     → provider client / parser failure, tagged with a FaultKind.
                        TrainingSession catches it and substitutes fallback content.
    SessionFlowError  → caller broke the session contract (bad index, wrong phase).
                        The HTTP layer maps it to 409.
    SessionLoadError  → even the fallback store produced no scenarios.
                        The session parks in LOAD_FAILED until retry_load().
    SessionNotFoundError → dev server got an unknown session_id (404).
"""

from cnv_trainer.models.enums import FaultKind


class ProviderFault(Exception):
    """Raised when a provider call or its response parsing fails.

    Causes:
        - Blank credential (UNINITIALIZED)
        - 400/401/403 or credential complaints (INVALID_CREDENTIAL)
        - 429 or quota complaints (QUOTA_EXCEEDED)
        - Safety / content-policy block (CONTENT_BLOCKED)
        - No JSON object or wrong shape (MALFORMED_RESPONSE)
        - Network failure, timeout, anything else (UNKNOWN)
    """

    def __init__(
        self,
        kind: FaultKind = FaultKind.UNKNOWN,
        message: str = "Content provider unavailable",
    ) -> None:
        self.kind = kind
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class SessionFlowError(Exception):
    """Raised when an input event is not legal in the current session phase."""

    def __init__(self, message: str = "Action not allowed in current session phase") -> None:
        self.message = message
        super().__init__(self.message)


class SessionLoadError(Exception):
    """Raised when neither the provider nor the fallback store yields scenarios.

    Should never happen with the built-in fallback store. Requires a
    user-initiated retry_load().
    """

    def __init__(self, message: str = "No scenarios available") -> None:
        self.message = message
        super().__init__(self.message)


class SessionNotFoundError(Exception):
    """Raised by the dev server when a session_id is unknown."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.message = f"Session '{session_id}' not found"
        super().__init__(self.message)
