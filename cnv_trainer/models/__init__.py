"""
CNV trainer — Pydantic models (the single source of truth for data contracts).

Public API:
    from cnv_trainer.models import (
        OptionKind, FaultKind, SessionPhase,
        UserProfile, Scenario, ScenarioOptions, FeedbackResult,
        AnsweredRecord, SessionState, OPTION_POINTS,
    )
"""

from cnv_trainer.models.enums import (
    DEFAULT_SCENARIO_COUNT,
    FALLBACK_SCENARIO_COUNT,
    MAX_POINTS_PER_QUESTION,
    OPTION_ORDER,
    OPTION_POINTS,
    FaultKind,
    OptionKind,
    SessionPhase,
)
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import (
    ConnectionResult,
    FeedbackResult,
    FeedbackText,
    Scenario,
    ScenarioBatch,
    ScenarioOptions,
)
from cnv_trainer.models.session import AnswerDistribution, AnsweredRecord, SessionState

__all__ = [
    # Enums
    "OptionKind",
    "FaultKind",
    "SessionPhase",
    # Models
    "UserProfile",
    "Scenario",
    "ScenarioOptions",
    "ScenarioBatch",
    "FeedbackText",
    "FeedbackResult",
    "ConnectionResult",
    "AnsweredRecord",
    "AnswerDistribution",
    "SessionState",
    # Constants
    "OPTION_ORDER",
    "OPTION_POINTS",
    "MAX_POINTS_PER_QUESTION",
    "DEFAULT_SCENARIO_COUNT",
    "FALLBACK_SCENARIO_COUNT",
]
