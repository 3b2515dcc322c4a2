"""
Service protocol (interface) for the generative-text provider.

Both the mock and the real implementation conform to it, so the session
state machine never knows which one it is talking to. USE_MOCKS swaps
them without code changes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cnv_trainer.models.enums import OptionKind
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import ConnectionResult, FeedbackResult, Scenario
from cnv_trainer.models.session import AnswerDistribution


@runtime_checkable
class ContentProvider(Protocol):
    """Generates scenarios, feedback and summaries for a training session.

    Implementations:
        - OpenAIContentProvider — OpenAI-compatible chat completions endpoint
        - MockContentProvider   — deterministic, offline

    Every request method makes a single attempt and raises ProviderFault
    on failure. Retrying is the caller's decision.
    """

    def initialize(self, api_key: str) -> None:
        """Store the credential and (re)create the underlying client."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        ...

    async def test_connection(self) -> ConnectionResult:
        """Check connectivity to the provider. Never raises for provider errors."""
        ...

    async def request_scenarios(self, profile: UserProfile) -> list[Scenario]:
        """Generate scenarios shaped to the profile.

        Raises:
            ProviderFault: Classified call failure or MALFORMED_RESPONSE.
        """
        ...

    async def request_feedback(
        self,
        situation: str,
        chosen_option: str,
        option_kind: OptionKind,
        user_name: str,
    ) -> FeedbackResult:
        """Generate feedback for one answer. Points come from OPTION_POINTS.

        Raises:
            ProviderFault: Classified call failure or MALFORMED_RESPONSE.
        """
        ...

    async def request_final_summary(
        self,
        user_name: str,
        total_score: int,
        total_questions: int,
        distribution: AnswerDistribution,
    ) -> str:
        """Generate the closing narrative (about 250 words), markup stripped.

        Raises:
            ProviderFault: Classified call failure or MALFORMED_RESPONSE.
        """
        ...
