"""
Enums and constants shared across the CNV trainer content pipeline.

These are CLOSED enums — adding a new value requires team discussion.
Pydantic validation rejects unknown enum values automatically.
"""

from enum import Enum


class OptionKind(str, Enum):
    """The four canonical response styles offered in every scenario.

    Display order (and therefore answer index) follows OPTION_ORDER:
        0 → passive, 1 → cnv, 2 → neutral, 3 → problematic
    """

    PASSIVE = "passive"
    CNV = "cnv"
    NEUTRAL = "neutral"
    PROBLEMATIC = "problematic"


class FaultKind(str, Enum):
    """Closed taxonomy of provider failures surfaced across component boundaries."""

    UNINITIALIZED = "uninitialized"
    INVALID_CREDENTIAL = "invalid-credential"
    QUOTA_EXCEEDED = "quota-exceeded"
    CONTENT_BLOCKED = "content-blocked"
    MALFORMED_RESPONSE = "malformed-response"
    UNKNOWN = "unknown"


class SessionPhase(str, Enum):
    """Phases of a training session.

    Transition graph:
        LOADING            → PRESENTING | LOAD_FAILED
        LOAD_FAILED        → LOADING (manual retry)
        PRESENTING         → AWAITING_FEEDBACK
        AWAITING_FEEDBACK  → SHOWING_FEEDBACK
        SHOWING_FEEDBACK   → PRESENTING | COMPLETED

    Terminal state: COMPLETED
    """

    LOADING = "loading"
    LOAD_FAILED = "load-failed"
    PRESENTING = "presenting"
    AWAITING_FEEDBACK = "awaiting-feedback"
    SHOWING_FEEDBACK = "showing-feedback"
    COMPLETED = "completed"


# ── Answer index → option kind ───────────────────────────────
OPTION_ORDER: tuple[OptionKind, ...] = (
    OptionKind.PASSIVE,
    OptionKind.CNV,
    OptionKind.NEUTRAL,
    OptionKind.PROBLEMATIC,
)

# ── Scoring ──────────────────────────────────────────────────
# Never derived from provider output.
OPTION_POINTS: dict[OptionKind, int] = {
    OptionKind.CNV: 10,
    OptionKind.NEUTRAL: 5,
    OptionKind.PASSIVE: 3,
    OptionKind.PROBLEMATIC: 0,
}

MAX_POINTS_PER_QUESTION: int = max(OPTION_POINTS.values())
DEFAULT_SCENARIO_COUNT: int = 10
FALLBACK_SCENARIO_COUNT: int = 3
