"""
Mock content provider — deterministic, offline, no API key needed.

Satisfies the ContentProvider protocol so the session state machine and
the dev server run end-to-end with USE_MOCKS=true. Tests use the
``fail_*`` knobs to simulate any FaultKind on any operation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from cnv_trainer.exceptions import ProviderFault
from cnv_trainer.models.enums import OPTION_POINTS, FaultKind, OptionKind
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import (
    ConnectionResult,
    FeedbackResult,
    Scenario,
    ScenarioOptions,
)
from cnv_trainer.models.session import AnswerDistribution
from cnv_trainer.services.faults import fault_message

logger = logging.getLogger("cnv_trainer")

_MOCK_SITUATIONS = (
    "A teammate sends you a curt message asking why the report is late.",
    "In a one-on-one, your manager says your presentations lack energy.",
    "A client raises their voice on a call about a missed delivery date.",
    "Two colleagues ask you to take sides in a disagreement about priorities.",
    "A new hire keeps asking you the same questions every day.",
    "Your idea is presented by a colleague as their own in a meeting.",
    "A coworker eats loudly next to you during focused work hours.",
    "Your manager assigns you a weekend task without asking.",
    "A peer rolls their eyes while you give feedback in a retro.",
    "A colleague replies all with a sarcastic comment about your email.",
)


class MockContentProvider:
    """Deterministic stand-in for OpenAIContentProvider.

    Args:
        scenario_count: How many scenarios request_scenarios() returns.
        latency_s: Simulated latency per call (0 by default).
    """

    def __init__(self, scenario_count: int = 10, latency_s: float = 0.0) -> None:
        self.scenario_count = scenario_count
        self.latency_s = latency_s
        self.api_key = ""

        # Failure knobs: set a FaultKind to make the operation raise it.
        self.fail_scenarios: Optional[FaultKind] = None
        self.fail_feedback: Optional[FaultKind] = None
        self.fail_summary: Optional[FaultKind] = None
        self.fail_connection: Optional[FaultKind] = None

        # Call counters (test helpers, not part of protocol)
        self.scenario_calls = 0
        self.feedback_calls = 0
        self.summary_calls = 0
        self.closed = False

    def initialize(self, api_key: str) -> None:
        self.api_key = api_key

    async def aclose(self) -> None:
        self.closed = True

    async def test_connection(self) -> ConnectionResult:
        await self._simulate_latency()
        if self.fail_connection is not None:
            return ConnectionResult(success=False, message=fault_message(self.fail_connection))
        return ConnectionResult(success=True, message="API working correctly (mock)")

    async def request_scenarios(self, profile: UserProfile) -> list[Scenario]:
        self.scenario_calls += 1
        await self._simulate_latency()
        self._maybe_fail(self.fail_scenarios, "scenarios")

        logger.debug(
            "MockContentProvider: generating scenarios",
            extra={"step": "mock_scenarios", "count": self.scenario_count},
        )
        return [
            Scenario(
                situation=f"{_MOCK_SITUATIONS[i % len(_MOCK_SITUATIONS)]} ({profile.name}, #{i + 1})",
                options=ScenarioOptions(
                    passive="You let it go and say nothing.",
                    cnv="You describe what you observed, how you feel, and ask what they need.",
                    neutral="You answer briefly and move on.",
                    problematic="You answer back with an accusation.",
                ),
            )
            for i in range(self.scenario_count)
        ]

    async def request_feedback(
        self,
        situation: str,
        chosen_option: str,
        option_kind: OptionKind,
        user_name: str,
    ) -> FeedbackResult:
        self.feedback_calls += 1
        await self._simulate_latency()
        self._maybe_fail(self.fail_feedback, "feedback")

        return FeedbackResult(
            immediate=f"[MOCK] {user_name}, you picked the {option_kind.value} reply.",
            detailed="[MOCK] The CNV reply states an observation, a feeling, a need and a request.",
            points=OPTION_POINTS[option_kind],
        )

    async def request_final_summary(
        self,
        user_name: str,
        total_score: int,
        total_questions: int,
        distribution: AnswerDistribution,
    ) -> str:
        self.summary_calls += 1
        await self._simulate_latency()
        self._maybe_fail(self.fail_summary, "summary")

        return (
            f"[MOCK] Well done, {user_name}: {total_score} points over "
            f"{total_questions} questions, {distribution.cnv} CNV answers."
        )

    # ── Internals ──────────────────────────────────────────

    async def _simulate_latency(self) -> None:
        if self.latency_s > 0:
            await asyncio.sleep(self.latency_s)

    @staticmethod
    def _maybe_fail(kind: Optional[FaultKind], operation: str) -> None:
        if kind is not None:
            raise ProviderFault(kind, f"[MOCK] simulated {kind.value} on {operation}")
