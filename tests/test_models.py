"""
Pydantic model tests.

Coverage:
    - Enums and the fixed points table
    - UserProfile validation
    - Scenario / ScenarioOptions shape invariants
    - FeedbackResult / AnsweredRecord immutability
    - SessionState helpers and AnswerDistribution
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cnv_trainer.models import (
    MAX_POINTS_PER_QUESTION,
    OPTION_ORDER,
    OPTION_POINTS,
    AnswerDistribution,
    AnsweredRecord,
    FaultKind,
    FeedbackResult,
    OptionKind,
    Scenario,
    ScenarioOptions,
    SessionState,
    UserProfile,
)


def _options(**overrides: str) -> dict[str, str]:
    base = {
        "passive": "p",
        "cnv": "c",
        "neutral": "n",
        "problematic": "x",
    }
    base.update(overrides)
    return base


# ═══════════════════════════════════════════════════════════
#  1. Enums & constants
# ═══════════════════════════════════════════════════════════


class TestEnums:
    def test_option_kinds_are_closed(self) -> None:
        assert {k.value for k in OptionKind} == {"passive", "cnv", "neutral", "problematic"}

    def test_fault_kinds_are_closed(self) -> None:
        assert {k.value for k in FaultKind} == {
            "uninitialized",
            "invalid-credential",
            "quota-exceeded",
            "content-blocked",
            "malformed-response",
            "unknown",
        }

    def test_points_table(self) -> None:
        assert OPTION_POINTS == {
            OptionKind.CNV: 10,
            OptionKind.NEUTRAL: 5,
            OptionKind.PASSIVE: 3,
            OptionKind.PROBLEMATIC: 0,
        }
        assert MAX_POINTS_PER_QUESTION == 10

    def test_display_order(self) -> None:
        assert [k.value for k in OPTION_ORDER] == ["passive", "cnv", "neutral", "problematic"]

    def test_unknown_option_kind_rejected(self) -> None:
        with pytest.raises(ValueError):
            OptionKind("assertive")


# ═══════════════════════════════════════════════════════════
#  2. UserProfile
# ═══════════════════════════════════════════════════════════


class TestUserProfile:
    def test_valid_profile(self) -> None:
        profile = UserProfile(name="Ana", knows_cnv=True, answers=["a", "b"])
        assert profile.name == "Ana"
        assert profile.answers == ("a", "b")

    def test_name_trimmed(self) -> None:
        assert UserProfile(name="  Ana ").name == "Ana"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name: str) -> None:
        with pytest.raises(ValidationError):
            UserProfile(name=name)

    def test_profile_is_frozen(self) -> None:
        profile = UserProfile(name="Ana")
        with pytest.raises(ValidationError):
            profile.name = "Bia"  # type: ignore[misc]


# ═══════════════════════════════════════════════════════════
#  3. Scenario
# ═══════════════════════════════════════════════════════════


class TestScenario:
    def test_valid_scenario(self) -> None:
        scenario = Scenario.model_validate({"situation": "s", "options": _options()})
        assert scenario.options.text_for(OptionKind.CNV) == "c"

    def test_ordered_options(self) -> None:
        scenario = Scenario.model_validate({"situation": "s", "options": _options()})
        assert scenario.options.ordered() == [
            (OptionKind.PASSIVE, "p"),
            (OptionKind.CNV, "c"),
            (OptionKind.NEUTRAL, "n"),
            (OptionKind.PROBLEMATIC, "x"),
        ]

    def test_missing_option_rejected(self) -> None:
        opts = _options()
        del opts["neutral"]
        with pytest.raises(ValidationError):
            Scenario.model_validate({"situation": "s", "options": opts})

    def test_extra_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Scenario.model_validate({"situation": "s", "options": _options(assertive="a")})

    def test_empty_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Scenario.model_validate({"situation": "s", "options": _options(cnv="")})

    def test_non_string_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Scenario.model_validate({"situation": "s", "options": _options(cnv=10)})  # type: ignore[arg-type]

    def test_scenario_is_frozen(self) -> None:
        scenario = Scenario.model_validate({"situation": "s", "options": _options()})
        with pytest.raises(ValidationError):
            scenario.situation = "other"  # type: ignore[misc]


# ═══════════════════════════════════════════════════════════
#  4. Feedback & records
# ═══════════════════════════════════════════════════════════


class TestFeedbackAndRecords:
    def test_negative_points_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FeedbackResult(immediate="i", detailed="d", points=-1)

    def test_record_is_frozen(self) -> None:
        record = AnsweredRecord(
            scenario="s", chosen="c", kind=OptionKind.CNV, feedback="f", points=10
        )
        with pytest.raises(ValidationError):
            record.points = 0  # type: ignore[misc]


class TestSessionState:
    def test_empty_state(self) -> None:
        state = SessionState()
        assert state.current_question_index == 0
        assert state.score == 0
        assert state.total_questions == 0
        assert state.is_complete is False

    def test_distribution_from_records(self) -> None:
        records = [
            AnsweredRecord(scenario="s", chosen="c", kind=OptionKind.CNV, feedback="f", points=10),
            AnsweredRecord(scenario="s", chosen="c", kind=OptionKind.CNV, feedback="f", points=10),
            AnsweredRecord(scenario="s", chosen="p", kind=OptionKind.PASSIVE, feedback="f", points=3),
        ]
        dist = AnswerDistribution.from_records(records)
        assert dist.cnv == 2
        assert dist.passive == 1
        assert dist.neutral == 0
        assert dist.problematic == 0
