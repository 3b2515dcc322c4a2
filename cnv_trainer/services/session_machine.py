"""
Session state machine — drives one training session from scenario loading
to the final summary.

    LOADING → PRESENTING → AWAITING_FEEDBACK → SHOWING_FEEDBACK
            → (PRESENTING | COMPLETED)

The provider proposes content; this machine owns the score. Points are
always taken from OPTION_POINTS, and every provider fault is absorbed
here by substituting fallback content, so a session can always reach
COMPLETED.

Public API:
    TrainingSession(provider, profile, *, on_scenarios_loaded=..., ...)
        await load_scenarios()   → source_was_fallback
        await select_answer(i)   → FeedbackResult | None (ignored duplicate)
        advance()                → SessionPhase
        await retry_load()       → source_was_fallback
        await final_summary()    → str
        close()
        await aclose()           → close() + provider.aclose()
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, Optional

from cnv_trainer.exceptions import ProviderFault, SessionFlowError, SessionLoadError
from cnv_trainer.models.enums import OPTION_ORDER, FaultKind, SessionPhase
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import FeedbackResult, Scenario
from cnv_trainer.models.session import AnswerDistribution, AnsweredRecord, SessionState
from cnv_trainer.services.fallback import (
    build_fallback_summary,
    build_local_feedback,
    get_fallback_scenarios,
    points_for,
)
from cnv_trainer.services.faults import as_fault, fault_message
from cnv_trainer.services.protocols import ContentProvider

logger = logging.getLogger("cnv_trainer")

ScenariosLoadedCallback = Callable[[list[Scenario], bool], None]
FeedbackReadyCallback = Callable[[FeedbackResult, bool], None]
SessionCompleteCallback = Callable[[SessionState], None]
FaultCallback = Callable[[FaultKind, str], None]

_ACTIVE_PHASES = frozenset(
    {
        SessionPhase.PRESENTING,
        SessionPhase.AWAITING_FEEDBACK,
        SessionPhase.SHOWING_FEEDBACK,
    }
)


class TrainingSession:
    """One user's pass through a set of scenarios.

    Owns the SessionState exclusively. Not safe for concurrent mutation
    from multiple callers; at most one provider call is in flight, guarded
    by the LOADING and AWAITING_FEEDBACK busy phases.

    Args:
        provider: Any ContentProvider, already constructed with a credential.
        profile: The trainee. Frozen for the life of the session.
        on_scenarios_loaded: Called with (scenarios, source_was_fallback).
        on_feedback_ready: Called with (feedback, used_fallback).
        on_session_complete: Called once with a copy of the final state.
        on_fault: Called with (fault_kind, plain-language message).
        fallback_source: Where fallback scenarios come from.
    """

    def __init__(
        self,
        provider: ContentProvider,
        profile: UserProfile,
        *,
        on_scenarios_loaded: Optional[ScenariosLoadedCallback] = None,
        on_feedback_ready: Optional[FeedbackReadyCallback] = None,
        on_session_complete: Optional[SessionCompleteCallback] = None,
        on_fault: Optional[FaultCallback] = None,
        fallback_source: Callable[[], list[Scenario]] = get_fallback_scenarios,
    ) -> None:
        self.session_id = str(uuid.uuid4())
        self._provider = provider
        self._profile = profile
        self._on_scenarios_loaded = on_scenarios_loaded
        self._on_feedback_ready = on_feedback_ready
        self._on_session_complete = on_session_complete
        self._on_fault = on_fault
        self._fallback_source = fallback_source

        self._state = SessionState()
        self._phase = SessionPhase.LOADING
        self._loading = False
        self._closed = False
        self._summary: Optional[str] = None
        self._summary_task: Optional[asyncio.Task[str]] = None

        self.source_was_fallback = False
        self.last_feedback: Optional[FeedbackResult] = None
        self.last_feedback_used_fallback = False
        self.last_fault: Optional[ProviderFault] = None
        self.summary_used_fallback = False

    # ── Read-only views ────────────────────────────────────

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def state(self) -> SessionState:
        """Deep copy of the current state. Mutating it has no effect."""
        return self._state.model_copy(deep=True)

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def current_question_index(self) -> int:
        return self._state.current_question_index

    @property
    def total_questions(self) -> int:
        return self._state.total_questions

    @property
    def current_scenario(self) -> Optional[Scenario]:
        if self._phase not in _ACTIVE_PHASES:
            return None
        return self._state.scenarios[self._state.current_question_index]

    @property
    def is_busy(self) -> bool:
        summarizing = self._summary_task is not None and not self._summary_task.done()
        return self._loading or summarizing or self._phase == SessionPhase.AWAITING_FEEDBACK

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Loading ────────────────────────────────────────────

    async def load_scenarios(self) -> Optional[bool]:
        """Fetch scenarios, falling back to the static set on any fault.

        Returns:
            True if fallback scenarios are in use, False if generated,
            None if the call was ignored (load already in flight) or the
            session was closed while waiting.

        Raises:
            SessionFlowError: Not in LOADING phase.
            SessionLoadError: The fallback source was empty as well.
        """
        self._ensure_open()
        if self._phase != SessionPhase.LOADING:
            raise SessionFlowError(f"Cannot load scenarios in phase {self._phase.value}")
        if self._loading:
            logger.debug(
                "Scenario load already in flight, ignored",
                extra={"step": "scenarios_load", "session_id": self.session_id},
            )
            return None

        self._loading = True
        fault: Optional[ProviderFault] = None
        scenarios: list[Scenario] = []
        try:
            scenarios = list(await self._provider.request_scenarios(self._profile))
            if not scenarios:
                fault = ProviderFault(
                    FaultKind.MALFORMED_RESPONSE, "Provider returned no scenarios"
                )
        except Exception as exc:
            fault = as_fault(exc)
        finally:
            self._loading = False

        if self._closed:
            self._log_discarded("scenarios_load")
            return None

        used_fallback = fault is not None
        if fault is not None:
            self._report_fault(fault, step="scenarios_fallback")
            scenarios = list(self._fallback_source())

        if not scenarios:
            self._phase = SessionPhase.LOAD_FAILED
            logger.error(
                "No scenarios available, fallback store empty",
                extra={"step": "scenarios_load_failed", "session_id": self.session_id},
            )
            raise SessionLoadError("No scenarios could be loaded. Try again.")

        self._state.scenarios = scenarios
        self._state.current_question_index = 0
        self._phase = SessionPhase.PRESENTING
        self.source_was_fallback = used_fallback

        logger.info(
            "Scenarios loaded",
            extra={
                "step": "scenarios_loaded",
                "session_id": self.session_id,
                "count": len(scenarios),
                "source": "fallback" if used_fallback else "generated",
            },
        )
        if self._on_scenarios_loaded is not None:
            self._on_scenarios_loaded(list(scenarios), used_fallback)
        return used_fallback

    async def retry_load(self) -> Optional[bool]:
        """Manual retry, only legal after a hard load failure."""
        self._ensure_open()
        if self._phase != SessionPhase.LOAD_FAILED:
            raise SessionFlowError(f"Retry is only allowed after a failed load, not in {self._phase.value}")
        logger.info(
            "Retrying scenario load",
            extra={"step": "scenarios_retry", "session_id": self.session_id},
        )
        self._phase = SessionPhase.LOADING
        return await self.load_scenarios()

    # ── Answering ──────────────────────────────────────────

    async def select_answer(self, index: int) -> Optional[FeedbackResult]:
        """Answer the current scenario with option ``index`` (0..3).

        Returns:
            The FeedbackResult shown to the user, or None if the selection
            was ignored (duplicate while awaiting feedback, or session
            closed while waiting).

        Raises:
            SessionFlowError: Bad index or not in PRESENTING phase.
        """
        self._ensure_open()
        if self._phase == SessionPhase.AWAITING_FEEDBACK:
            logger.debug(
                "Duplicate answer selection while awaiting feedback, ignored",
                extra={"step": "answer_ignored", "session_id": self.session_id, "index": index},
            )
            return None
        if self._phase != SessionPhase.PRESENTING:
            raise SessionFlowError(f"Cannot answer in phase {self._phase.value}")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(OPTION_ORDER):
            raise SessionFlowError(f"Answer index must be 0..{len(OPTION_ORDER) - 1}, got {index!r}")

        scenario = self._state.scenarios[self._state.current_question_index]
        kind = OPTION_ORDER[index]
        chosen = scenario.options.text_for(kind)
        self._phase = SessionPhase.AWAITING_FEEDBACK

        fault: Optional[ProviderFault] = None
        feedback: Optional[FeedbackResult] = None
        try:
            feedback = await self._provider.request_feedback(
                scenario.situation,
                chosen,
                kind,
                self._profile.name,
            )
        except Exception as exc:
            fault = as_fault(exc)

        if self._closed:
            self._log_discarded("feedback")
            return None

        if fault is not None or feedback is None:
            if fault is not None:
                self._report_fault(fault, step="feedback_fallback")
            feedback = build_local_feedback(self._profile.name, kind)
            used_fallback = True
        else:
            used_fallback = False

        points = points_for(kind)
        if feedback.points != points:
            logger.warning(
                "Provider points overridden by table",
                extra={
                    "step": "points_override",
                    "session_id": self.session_id,
                    "provider_points": feedback.points,
                    "table_points": points,
                },
            )
            feedback = feedback.model_copy(update={"points": points})

        self._state.answers.append(
            AnsweredRecord(
                scenario=scenario.situation,
                chosen=chosen,
                kind=kind,
                feedback=feedback.immediate,
                points=points,
            )
        )
        self._state.score += points
        self._phase = SessionPhase.SHOWING_FEEDBACK
        self.last_feedback = feedback
        self.last_feedback_used_fallback = used_fallback

        logger.info(
            "Answer recorded",
            extra={
                "step": "answer_recorded",
                "session_id": self.session_id,
                "question": self._state.current_question_index + 1,
                "kind": kind.value,
                "points": points,
                "score": self._state.score,
                "used_fallback": used_fallback,
            },
        )
        if self._on_feedback_ready is not None:
            self._on_feedback_ready(feedback, used_fallback)
        return feedback

    def advance(self) -> SessionPhase:
        """The "continue" event: next question, or COMPLETED after the last one.

        Raises:
            SessionFlowError: Not in SHOWING_FEEDBACK phase.
        """
        self._ensure_open()
        if self._phase != SessionPhase.SHOWING_FEEDBACK:
            raise SessionFlowError(f"Cannot continue in phase {self._phase.value}")

        self._state.current_question_index += 1
        self.last_feedback = None
        self.last_feedback_used_fallback = False

        if self._state.current_question_index < len(self._state.scenarios):
            self._phase = SessionPhase.PRESENTING
            return self._phase

        self._phase = SessionPhase.COMPLETED
        final_state = self.state
        logger.info(
            "Session completed",
            extra={
                "step": "session_completed",
                "session_id": self.session_id,
                "score": final_state.score,
                "questions": final_state.total_questions,
                "source": "fallback" if self.source_was_fallback else "generated",
            },
        )
        if self._on_session_complete is not None:
            self._on_session_complete(final_state)
        return self._phase

    # ── Completion ─────────────────────────────────────────

    async def final_summary(self) -> str:
        """Narrative summary, or the templated one if the provider fails.

        Cached after the first call. Concurrent callers share the one
        in-flight provider request.

        Raises:
            SessionFlowError: Session not COMPLETED.
        """
        if self._phase != SessionPhase.COMPLETED:
            raise SessionFlowError(f"Summary is only available once completed, not in {self._phase.value}")
        if self._summary is not None:
            return self._summary
        if self._summary_task is None:
            self._summary_task = asyncio.create_task(self._generate_summary())
        return await self._summary_task

    async def _generate_summary(self) -> str:
        total_questions = len(self._state.scenarios)
        try:
            text = await self._provider.request_final_summary(
                self._profile.name,
                self._state.score,
                total_questions,
                AnswerDistribution.from_records(self._state.answers),
            )
            self.summary_used_fallback = False
        except Exception as exc:
            self._report_fault(as_fault(exc), step="summary_fallback")
            text = build_fallback_summary(self._profile.name, self._state.score, total_questions)
            self.summary_used_fallback = True

        self._summary = text
        return text

    def close(self) -> None:
        """Supersede the session. In-flight results will be discarded."""
        if not self._closed:
            self._closed = True
            logger.info(
                "Session closed",
                extra={"step": "session_closed", "session_id": self.session_id, "phase": self._phase.value},
            )

    async def aclose(self) -> None:
        """close() and release the provider's network resources."""
        self.close()
        await self._provider.aclose()

    # ── Internals ──────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionFlowError("Session has been closed")

    def _report_fault(self, fault: ProviderFault, *, step: str) -> None:
        self.last_fault = fault
        logger.warning(
            "Provider fault, using fallback content",
            extra={
                "step": step,
                "session_id": self.session_id,
                "fault_kind": fault.kind.value,
                "error": fault.message,
            },
        )
        if self._on_fault is not None:
            self._on_fault(fault.kind, fault_message(fault.kind))

    def _log_discarded(self, what: str) -> None:
        logger.info(
            "Session closed while waiting, result discarded",
            extra={"step": "result_discarded", "session_id": self.session_id, "what": what},
        )
