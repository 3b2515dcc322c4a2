"""
Fault classifier — maps raw provider errors onto the closed FaultKind set.

Public API:
    classify(status_code, message) → FaultKind     (pure heuristic)
    classify_error(exc)            → FaultKind
    as_fault(exc)                  → ProviderFault
    FAULT_MESSAGES                 — plain-language notification per kind

The classification is advisory. It decides the user-facing message only;
TrainingSession falls back to static content on every kind alike.
"""

from __future__ import annotations

from typing import Optional

from cnv_trainer.exceptions import ProviderFault
from cnv_trainer.models.enums import FaultKind

# ── Status codes ─────────────────────────────────────────────
# The Gemini endpoint answers 400 (not 401) for API_KEY_INVALID.
_CREDENTIAL_STATUSES = frozenset({400, 401, 403})
_QUOTA_STATUSES = frozenset({429})

# ── Keyword heuristics, checked in this order ───────────────
_CREDENTIAL_KEYWORDS = (
    "api_key",
    "api key",
    "invalid",
    "unauthorized",
    "unauthenticated",
    "permission denied",
)
_QUOTA_KEYWORDS = (
    "quota",
    "rate limit",
    "rate_limit",
    "resource_exhausted",
    "limit",
)
_SAFETY_KEYWORDS = (
    "blocked",
    "safety",
    "content policy",
    "content_filter",
)

FAULT_MESSAGES: dict[FaultKind, str] = {
    FaultKind.UNINITIALIZED: "The content provider has not been set up with an API key.",
    FaultKind.INVALID_CREDENTIAL: "Invalid API key. Check that your key is correct and active.",
    FaultKind.QUOTA_EXCEEDED: "API usage limit reached. Try again later.",
    FaultKind.CONTENT_BLOCKED: "The content was blocked by the provider's safety policies.",
    FaultKind.MALFORMED_RESPONSE: "The provider returned a response in an unexpected format.",
    FaultKind.UNKNOWN: "The content provider is temporarily unavailable.",
}


def classify(status_code: Optional[int], message: str) -> FaultKind:
    """Classify a provider failure from its status code and message text.

    Status codes win over keywords; keywords are matched case-insensitively.
    """
    if status_code in _CREDENTIAL_STATUSES:
        return FaultKind.INVALID_CREDENTIAL
    if status_code in _QUOTA_STATUSES:
        return FaultKind.QUOTA_EXCEEDED

    text = (message or "").lower()
    if any(kw in text for kw in _CREDENTIAL_KEYWORDS):
        return FaultKind.INVALID_CREDENTIAL
    if any(kw in text for kw in _QUOTA_KEYWORDS):
        return FaultKind.QUOTA_EXCEEDED
    if any(kw in text for kw in _SAFETY_KEYWORDS):
        return FaultKind.CONTENT_BLOCKED
    return FaultKind.UNKNOWN


def classify_error(exc: BaseException) -> FaultKind:
    """Classify any exception raised while talking to the provider.

    ProviderFault keeps the kind it was raised with (parser faults are
    MALFORMED_RESPONSE at the source). SDK errors expose ``status_code``.
    """
    if isinstance(exc, ProviderFault):
        return exc.kind
    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None
    return classify(status_code, str(exc))


def as_fault(exc: BaseException) -> ProviderFault:
    """Wrap any exception into a FaultKind-tagged ProviderFault."""
    if isinstance(exc, ProviderFault):
        return exc
    return ProviderFault(classify_error(exc), str(exc) or type(exc).__name__)


def fault_message(kind: FaultKind) -> str:
    """Plain-language notification text for a fault kind."""
    return FAULT_MESSAGES[kind]
