"""
Pydantic models for content produced by the provider or the fallback store.

ScenarioBatch / FeedbackText — internal models for parsing provider JSON.
Scenario / FeedbackResult    — immutable value objects handed to presentation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from cnv_trainer.models.enums import OPTION_ORDER, OptionKind


class ScenarioOptions(BaseModel):
    """Exactly one response per OptionKind — unknown keys are rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    passive: StrictStr = Field(..., min_length=1, description="Avoids the conflict, solves nothing.")
    cnv: StrictStr = Field(..., min_length=1, description="Applies CNV concisely.")
    neutral: StrictStr = Field(..., min_length=1, description="Common reply that does not resolve.")
    problematic: StrictStr = Field(..., min_length=1, description="Escalates the conflict.")

    def text_for(self, kind: OptionKind) -> str:
        """Return the option text for a given kind."""
        return getattr(self, kind.value)

    def ordered(self) -> list[tuple[OptionKind, str]]:
        """Options in display order (index 0..3)."""
        return [(kind, self.text_for(kind)) for kind in OPTION_ORDER]


class Scenario(BaseModel):
    """A workplace situation plus its four candidate responses."""

    model_config = ConfigDict(frozen=True)

    situation: StrictStr = Field(..., min_length=1)
    options: ScenarioOptions


class ScenarioBatch(BaseModel):
    """Structured scenarios payload demanded from the provider.

    Validation is all-or-nothing: a single bad element rejects the batch.
    """

    scenarios: list[Scenario] = Field(..., min_length=1)


class FeedbackText(BaseModel):
    """Feedback payload from the provider.

    Any ``points`` the provider echoes back is dropped here; scoring
    comes from OPTION_POINTS only.
    """

    model_config = ConfigDict(frozen=True)

    immediate: StrictStr
    detailed: StrictStr


class FeedbackResult(BaseModel):
    """Feedback shown to the user for one answered question."""

    model_config = ConfigDict(frozen=True)

    immediate: str
    detailed: str
    points: int = Field(..., ge=0)


class ConnectionResult(BaseModel):
    """Outcome of a connectivity check. Never an exception."""

    success: bool
    message: str
