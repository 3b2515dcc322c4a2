"""
Real provider client — OpenAI-compatible chat completions.

Conforms to the ContentProvider protocol defined in protocols.py.
Defaults to Google's OpenAI-compatible Gemini endpoint; any endpoint
that speaks the chat completions API works via PROVIDER_BASE_URL.

Call policy:
    - One attempt per operation. The SDK's built-in retry is disabled.
    - Every failure is raised as ProviderFault tagged by the fault
      classifier; parse failures are MALFORMED_RESPONSE.
    - test_connection() never raises for provider errors.
    - No timeout beyond the SDK's own default.
    - aclose() releases the connection pool; owners must await it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from openai import AsyncOpenAI

from cnv_trainer.config import Settings, get_settings
from cnv_trainer.exceptions import ProviderFault
from cnv_trainer.models.enums import OPTION_POINTS, FaultKind, OptionKind
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import ConnectionResult, FeedbackResult, Scenario
from cnv_trainer.models.session import AnswerDistribution
from cnv_trainer.prompts.training import (
    CONNECTION_CHECK_PROMPT,
    PROMPT_VERSION,
    build_feedback_prompt,
    build_scenarios_prompt,
    build_summary_prompt,
)
from cnv_trainer.services.faults import as_fault, fault_message
from cnv_trainer.services.parser import parse_feedback, parse_scenarios
from cnv_trainer.services.sanitize import clean_summary, strip_disallowed

logger = logging.getLogger("cnv_trainer")

_CHECK_MAX_TOKENS = 10


class OpenAIContentProvider:
    """Content provider backed by an OpenAI-compatible endpoint.

    Construction is initialization: pass the credential to the
    constructor, or call initialize() again to swap it. A blank
    credential leaves the provider UNINITIALIZED and every request
    fails fast without network I/O.

    Args:
        api_key: Credential from the credential collaborator.
        settings: Optional settings override (defaults to get_settings()).
    """

    def __init__(self, api_key: str = "", *, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._model = self._settings.provider_model
        self._temperature = self._settings.ai_temperature
        self._max_tokens = self._settings.ai_max_tokens
        self._scenario_count = self._settings.scenario_count
        self._client: Optional[AsyncOpenAI] = None
        self._retired: list[AsyncOpenAI] = []
        self._closing: set[asyncio.Task[None]] = set()
        self.initialize(api_key)

    # ── Lifecycle ──────────────────────────────────────────

    def initialize(self, api_key: str) -> None:
        """Store the credential and (re)create the SDK client.

        Safe to call again; the previous client is closed.
        """
        key = (api_key or "").strip()
        self._retire_client()
        if not key:
            logger.warning(
                "Content provider has no credential",
                extra={"step": "provider_init", "model": self._model},
            )
            return

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=self._settings.provider_base_url,
            max_retries=0,
        )
        logger.info(
            "OpenAIContentProvider initialized",
            extra={
                "step": "provider_init",
                "model": self._model,
                "base_url": self._settings.provider_base_url,
                "prompt_version": PROMPT_VERSION,
            },
        )

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def aclose(self) -> None:
        """Close the SDK client and any client replaced by initialize()."""
        self._retire_client()
        if self._closing:
            await asyncio.gather(*self._closing)
        retired, self._retired = self._retired, []
        for client in retired:
            await client.close()

    def _retire_client(self) -> None:
        """Detach the current client and close it off the caller's path.

        initialize() is synchronous, so the close is scheduled on the
        running loop when there is one and deferred to aclose() otherwise.
        """
        client, self._client = self._client, None
        if client is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._retired.append(client)
            return
        task = loop.create_task(client.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    # ── Operations ─────────────────────────────────────────

    async def test_connection(self) -> ConnectionResult:
        """Send the connection-check prompt; success if any response comes back."""
        try:
            text = await self._complete(
                CONNECTION_CHECK_PROMPT,
                step="connection_test",
                max_tokens=_CHECK_MAX_TOKENS,
                require_content=False,
            )
        except ProviderFault as fault:
            message = fault_message(fault.kind)
            if fault.kind == FaultKind.UNKNOWN:
                message = f"API error: {fault.message}"
            return ConnectionResult(success=False, message=message)

        logger.info(
            "Connection test succeeded",
            extra={"step": "connection_test", "response_snippet": text[:40]},
        )
        return ConnectionResult(success=True, message="API working correctly")

    async def request_scenarios(self, profile: UserProfile) -> list[Scenario]:
        """Generate ``scenario_count`` scenarios for the profile."""
        prompt = build_scenarios_prompt(profile, self._scenario_count)
        raw = await self._complete(prompt, step="scenarios_request")
        scenarios = parse_scenarios(raw)

        if len(scenarios) != self._scenario_count:
            logger.warning(
                "Provider returned an unexpected scenario count",
                extra={
                    "step": "scenarios_parsed",
                    "requested": self._scenario_count,
                    "received": len(scenarios),
                },
            )
        logger.info(
            "Scenarios generated",
            extra={"step": "scenarios_parsed", "count": len(scenarios)},
        )
        return scenarios

    async def request_feedback(
        self,
        situation: str,
        chosen_option: str,
        option_kind: OptionKind,
        user_name: str,
    ) -> FeedbackResult:
        """Generate feedback; points always come from OPTION_POINTS."""
        prompt = build_feedback_prompt(
            situation=situation,
            chosen_option=chosen_option,
            option_kind=option_kind,
            user_name=user_name,
        )
        raw = await self._complete(prompt, step="feedback_request")
        payload = parse_feedback(raw)

        return FeedbackResult(
            immediate=strip_disallowed(payload.immediate),
            detailed=strip_disallowed(payload.detailed),
            points=OPTION_POINTS[option_kind],
        )

    async def request_final_summary(
        self,
        user_name: str,
        total_score: int,
        total_questions: int,
        distribution: AnswerDistribution,
    ) -> str:
        """Generate the closing narrative with markup stripped."""
        prompt = build_summary_prompt(
            user_name=user_name,
            total_score=total_score,
            total_questions=total_questions,
            distribution=distribution,
        )
        raw = await self._complete(prompt, step="summary_request")
        text = clean_summary(raw)
        if not text:
            raise ProviderFault(FaultKind.MALFORMED_RESPONSE, "Empty summary text")
        return text

    # ── Internals ──────────────────────────────────────────

    async def _complete(
        self,
        prompt: str,
        *,
        step: str,
        max_tokens: Optional[int] = None,
        require_content: bool = True,
    ) -> str:
        """Make one chat completion call and return its raw text.

        With ``require_content=False`` any completion is accepted, even an
        empty or truncated one, and its text (possibly empty) is returned.

        Raises:
            ProviderFault: UNINITIALIZED, a classified SDK error,
                CONTENT_BLOCKED for filtered output, or MALFORMED_RESPONSE
                for an empty message.
        """
        if self._client is None:
            raise ProviderFault(FaultKind.UNINITIALIZED, "Content provider not initialized")

        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
                max_tokens=max_tokens or self._max_tokens,
            )
        except Exception as exc:
            fault = as_fault(exc)
            logger.warning(
                "Provider call failed",
                extra={
                    "step": step,
                    "fault_kind": fault.kind.value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise fault from exc

        duration_ms = round((time.monotonic() - t0) * 1000, 1)

        if not require_content:
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        if not response.choices:
            raise ProviderFault(FaultKind.CONTENT_BLOCKED, "Provider returned no candidates")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            logger.warning(
                "Provider output blocked by content filter",
                extra={"step": step, "duration_ms": duration_ms},
            )
            raise ProviderFault(FaultKind.CONTENT_BLOCKED, "Response blocked by safety filter")

        content = choice.message.content
        if not content:
            raise ProviderFault(FaultKind.MALFORMED_RESPONSE, "Provider returned empty content")

        logger.debug(
            "Provider raw response",
            extra={
                "step": step,
                "duration_ms": duration_ms,
                "prompt_version": PROMPT_VERSION,
                "content_length": len(content),
            },
        )
        return content
