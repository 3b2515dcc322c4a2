"""
Pydantic models for inputs to a training session.

UserProfile is supplied by the questionnaire step that precedes the game.
It is only used as free-text context for scenario generation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """Who is training. Frozen once a session starts."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Display name used to personalize scenarios and feedback.",
    )
    knows_cnv: bool = Field(
        default=False,
        description="Whether the user already knows Nonviolent Communication.",
    )
    answers: tuple[str, ...] = Field(
        default=(),
        description="Prior questionnaire responses, in order.",
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim surrounding whitespace so a blank name fails min_length."""
        if isinstance(v, str):
            return v.strip()
        return v
