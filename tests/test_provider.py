"""
Provider client tests.

Tests for:
    1. Prompt builders (training.py)
    2. OpenAIContentProvider lifecycle and test_connection()
    3. request_scenarios / request_feedback / request_final_summary
    4. SDK error classification — one attempt, no retries

All tests mock the OpenAI client — no real API calls are made.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import APIConnectionError, APITimeoutError, AuthenticationError, RateLimitError

from cnv_trainer.config import Settings
from cnv_trainer.exceptions import ProviderFault
from cnv_trainer.models.enums import FaultKind, OptionKind
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.session import AnswerDistribution
from cnv_trainer.prompts.training import (
    CONNECTION_CHECK_PROMPT,
    SCENARIOS_SCHEMA,
    build_feedback_prompt,
    build_scenarios_prompt,
    build_summary_prompt,
)
from cnv_trainer.services.protocols import ContentProvider
from cnv_trainer.services.provider import OpenAIContentProvider


# ═══════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════


def _settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "provider_model": "gemini-2.0-flash",
        "ai_temperature": 0.8,
        "ai_max_tokens": 8192,
        "scenario_count": 2,
    }
    values.update(overrides)
    return Settings(**values)


def _make_openai_response(content: str | None, finish_reason: str = "stop") -> MagicMock:
    """Build a mock OpenAI ChatCompletion response."""
    mock_resp = MagicMock()
    mock_resp.choices = [MagicMock()]
    mock_resp.choices[0].message.content = content
    mock_resp.choices[0].finish_reason = finish_reason
    return mock_resp


def _provider_with(create: AsyncMock, **settings: Any) -> OpenAIContentProvider:
    provider = OpenAIContentProvider("sk-test", settings=_settings(**settings))
    provider._client = MagicMock()
    provider._client.chat = MagicMock()
    provider._client.chat.completions = MagicMock()
    provider._client.chat.completions.create = create
    return provider


def _scenarios_json(count: int) -> str:
    return json.dumps(
        {
            "scenarios": [
                {
                    "situation": f"Situation {i}",
                    "options": {
                        "passive": "p",
                        "cnv": "c",
                        "neutral": "n",
                        "problematic": "x",
                    },
                }
                for i in range(count)
            ]
        }
    )


def _ana() -> UserProfile:
    return UserProfile(name="Ana", knows_cnv=False, answers=["a", "b"])


# ═══════════════════════════════════════════════════════════
#  1. Prompt builders
# ═══════════════════════════════════════════════════════════


class TestPromptBuilders:
    def test_scenarios_prompt_profile(self) -> None:
        prompt = build_scenarios_prompt(_ana(), 10)
        assert "EXACTLY 10" in prompt
        assert "- Name: Ana" in prompt
        assert "- Knows CNV: No" in prompt
        assert "- Questionnaire answers: a, b" in prompt
        assert SCENARIOS_SCHEMA in prompt

    def test_scenarios_prompt_no_answers(self) -> None:
        prompt = build_scenarios_prompt(UserProfile(name="Bia", knows_cnv=True), 3)
        assert "- Knows CNV: Yes" in prompt
        assert "- Questionnaire answers: none" in prompt

    def test_feedback_prompt(self) -> None:
        prompt = build_feedback_prompt(
            situation="Meeting interruption",
            chosen_option="Let me finish",
            option_kind=OptionKind.NEUTRAL,
            user_name="Ana",
        )
        assert "SCENARIO: Meeting interruption" in prompt
        assert "CHOSEN REPLY: Let me finish" in prompt
        assert "REPLY TYPE: neutral" in prompt
        assert '"points": 5' in prompt
        assert '"immediate"' in prompt and '"detailed"' in prompt

    def test_summary_prompt(self) -> None:
        prompt = build_summary_prompt(
            user_name="Ana",
            total_score=15,
            total_questions=3,
            distribution=AnswerDistribution(cnv=1, neutral=1, problematic=1),
        )
        assert "SCORE: 15 of 30 possible points (50.0%)" in prompt
        assert "- CNV answers: 1 of 3" in prompt
        assert "- Passive answers: 0 of 3" in prompt
        assert "Address Ana by name" in prompt

    def test_summary_prompt_zero_questions(self) -> None:
        prompt = build_summary_prompt(
            user_name="Ana",
            total_score=0,
            total_questions=0,
            distribution=AnswerDistribution(),
        )
        assert "SCORE: 0 of 0 possible points (0.0%)" in prompt


# ═══════════════════════════════════════════════════════════
#  2. Lifecycle & connection test
# ═══════════════════════════════════════════════════════════


class TestProviderLifecycle:
    def test_conforms_to_protocol(self) -> None:
        assert isinstance(OpenAIContentProvider("sk-test", settings=_settings()), ContentProvider)

    def test_blank_key_uninitialized(self) -> None:
        provider = OpenAIContentProvider("   ", settings=_settings())
        assert provider.is_initialized is False

    def test_initialize_swaps_credential(self) -> None:
        provider = OpenAIContentProvider("", settings=_settings())
        provider.initialize("sk-new")
        assert provider.is_initialized is True
        provider.initialize("")
        assert provider.is_initialized is False

    @pytest.mark.asyncio
    async def test_uninitialized_request_fails_fast(self) -> None:
        provider = OpenAIContentProvider("", settings=_settings())
        with pytest.raises(ProviderFault) as exc_info:
            await provider.request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_connection_success(self) -> None:
        create = AsyncMock(return_value=_make_openai_response("OK"))
        provider = _provider_with(create)

        result = await provider.test_connection()

        assert result.success is True
        assert result.message == "API working correctly"
        kwargs = create.await_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": CONNECTION_CHECK_PROMPT}]
        assert kwargs["max_tokens"] == 10

    @pytest.mark.asyncio
    async def test_connection_uninitialized_never_raises(self) -> None:
        provider = OpenAIContentProvider("", settings=_settings())
        result = await provider.test_connection()
        assert result.success is False
        assert "API key" in result.message

    @pytest.mark.asyncio
    async def test_connection_invalid_key(self) -> None:
        create = AsyncMock(
            side_effect=AuthenticationError(
                message="Invalid API key",
                response=MagicMock(status_code=401),
                body=None,
            )
        )
        result = await _provider_with(create).test_connection()
        assert result.success is False
        assert result.message.startswith("Invalid API key")

    @pytest.mark.asyncio
    async def test_connection_unknown_error_includes_detail(self) -> None:
        create = AsyncMock(side_effect=RuntimeError("socket closed"))
        result = await _provider_with(create).test_connection()
        assert result.success is False
        assert result.message == "API error: socket closed"

    @pytest.mark.asyncio
    async def test_connection_empty_reply_is_success(self) -> None:
        """A truncated, empty completion still proves the key works."""
        create = AsyncMock(return_value=_make_openai_response("", finish_reason="length"))
        result = await _provider_with(create).test_connection()
        assert result.success is True
        assert result.message == "API working correctly"

    @pytest.mark.asyncio
    async def test_connection_no_choices_is_success(self) -> None:
        response = MagicMock()
        response.choices = []
        result = await _provider_with(AsyncMock(return_value=response)).test_connection()
        assert result.success is True

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self) -> None:
        provider = OpenAIContentProvider("sk-test", settings=_settings())
        client = provider._client
        assert client is not None

        await provider.aclose()

        assert client.is_closed() is True
        assert provider.is_initialized is False

    @pytest.mark.asyncio
    async def test_reinitialize_closes_previous_client(self) -> None:
        provider = OpenAIContentProvider("sk-test", settings=_settings())
        old = provider._client
        assert old is not None

        provider.initialize("sk-other")
        new = provider._client
        assert new is not None and new is not old
        await asyncio.sleep(0)
        await provider.aclose()

        assert old.is_closed() is True
        assert new.is_closed() is True

    @pytest.mark.asyncio
    async def test_reinitialize_closes_mocked_client_once(self) -> None:
        provider = OpenAIContentProvider("sk-test", settings=_settings())
        old = MagicMock()
        old.close = AsyncMock()
        provider._client = old

        provider.initialize("")
        await provider.aclose()

        old.close.assert_awaited_once()

    def test_reinitialize_outside_loop_deferred_to_aclose(self) -> None:
        provider = OpenAIContentProvider("sk-test", settings=_settings())
        old = provider._client
        assert old is not None

        provider.initialize("sk-other")
        assert old.is_closed() is False

        asyncio.run(provider.aclose())
        assert old.is_closed() is True


# ═══════════════════════════════════════════════════════════
#  3. Operations
# ═══════════════════════════════════════════════════════════


class TestProviderOperations:
    @pytest.mark.asyncio
    async def test_request_scenarios(self) -> None:
        raw = "Here are your scenarios:\n```json\n" + _scenarios_json(2) + "\n```"
        create = AsyncMock(return_value=_make_openai_response(raw))
        provider = _provider_with(create)

        scenarios = await provider.request_scenarios(_ana())

        assert [s.situation for s in scenarios] == ["Situation 0", "Situation 1"]
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert kwargs["temperature"] == 0.8
        assert kwargs["max_tokens"] == 8192
        assert "EXACTLY 2" in kwargs["messages"][0]["content"]
        create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_request_scenarios_count_mismatch_kept(self) -> None:
        create = AsyncMock(return_value=_make_openai_response(_scenarios_json(3)))
        scenarios = await _provider_with(create).request_scenarios(_ana())
        assert len(scenarios) == 3

    @pytest.mark.asyncio
    async def test_request_scenarios_malformed(self) -> None:
        create = AsyncMock(return_value=_make_openai_response("Sorry, I cannot help."))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_request_feedback_points_from_table(self) -> None:
        raw = json.dumps(
            {
                "immediate": "**Great** choice, Ana!",
                "detailed": "It's the \"CNV\" way.",
                "points": 999,
            }
        )
        create = AsyncMock(return_value=_make_openai_response(raw))

        result = await _provider_with(create).request_feedback(
            "Situation", "Let me finish", OptionKind.CNV, "Ana"
        )

        assert result.points == 10
        assert result.immediate == "Great choice, Ana!"
        assert result.detailed == "Its the CNV way."

    @pytest.mark.asyncio
    async def test_request_final_summary_cleaned(self) -> None:
        create = AsyncMock(return_value=_make_openai_response("## Well done, Ana!\n\n\n**Keep going**"))
        text = await _provider_with(create).request_final_summary(
            "Ana", 30, 3, AnswerDistribution(cnv=3)
        )
        assert text == "Well done, Ana!\nKeep going"

    @pytest.mark.asyncio
    async def test_request_final_summary_empty_is_malformed(self) -> None:
        create = AsyncMock(return_value=_make_openai_response("** **"))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_final_summary("Ana", 0, 3, AnswerDistribution())
        assert exc_info.value.kind == FaultKind.MALFORMED_RESPONSE


# ═══════════════════════════════════════════════════════════
#  4. Error classification
# ═══════════════════════════════════════════════════════════


class TestProviderErrors:
    @pytest.mark.asyncio
    async def test_rate_limit_is_quota(self) -> None:
        create = AsyncMock(
            side_effect=RateLimitError(
                message="Resource has been exhausted",
                response=MagicMock(status_code=429),
                body=None,
            )
        )
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_feedback("s", "c", OptionKind.CNV, "Ana")
        assert exc_info.value.kind == FaultKind.QUOTA_EXCEEDED
        create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_is_unknown_and_not_retried(self) -> None:
        create = AsyncMock(side_effect=APITimeoutError(request=MagicMock()))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.UNKNOWN
        assert create.await_count == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_unknown(self) -> None:
        create = AsyncMock(side_effect=APIConnectionError(request=MagicMock()))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.UNKNOWN
        assert isinstance(exc_info.value.__cause__, APIConnectionError)

    @pytest.mark.asyncio
    async def test_content_filter_is_blocked(self) -> None:
        create = AsyncMock(return_value=_make_openai_response(None, finish_reason="content_filter"))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.CONTENT_BLOCKED

    @pytest.mark.asyncio
    async def test_no_choices_is_blocked(self) -> None:
        response = MagicMock()
        response.choices = []
        create = AsyncMock(return_value=response)
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.CONTENT_BLOCKED

    @pytest.mark.asyncio
    async def test_empty_content_is_malformed(self) -> None:
        create = AsyncMock(return_value=_make_openai_response(""))
        with pytest.raises(ProviderFault) as exc_info:
            await _provider_with(create).request_scenarios(_ana())
        assert exc_info.value.kind == FaultKind.MALFORMED_RESPONSE
