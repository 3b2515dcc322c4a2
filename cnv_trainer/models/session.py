"""
Pydantic models for session state owned by the session state machine.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cnv_trainer.models.enums import OptionKind
from cnv_trainer.models.response import Scenario


class AnsweredRecord(BaseModel):
    """One answered question. Append-only, never edited."""

    model_config = ConfigDict(frozen=True)

    scenario: str
    chosen: str
    kind: OptionKind
    feedback: str
    points: int = Field(..., ge=0)


class AnswerDistribution(BaseModel):
    """How many answers fell into each OptionKind."""

    passive: int = 0
    cnv: int = 0
    neutral: int = 0
    problematic: int = 0

    @classmethod
    def from_records(cls, records: list[AnsweredRecord]) -> AnswerDistribution:
        counts = {kind.value: 0 for kind in OptionKind}
        for record in records:
            counts[record.kind.value] += 1
        return cls(**counts)


class SessionState(BaseModel):
    """Single source of truth for one training session.

    Mutated only by TrainingSession; everyone else gets deep copies.
    """

    current_question_index: int = Field(default=0, ge=0)
    score: int = Field(default=0, ge=0)
    answers: list[AnsweredRecord] = Field(default_factory=list)
    scenarios: list[Scenario] = Field(default_factory=list)

    @property
    def total_questions(self) -> int:
        return len(self.scenarios)

    @property
    def is_complete(self) -> bool:
        return bool(self.scenarios) and self.current_question_index >= len(self.scenarios)
