"""
CNV trainer — FastAPI entry point (dev/testing only).

Thin HTTP surface over TrainingSession so the presentation layer (or
curl) can drive a session: create → answer → continue → summary.
Sessions live in an in-memory registry and disappear on restart.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from cnv_trainer.config import Settings, get_settings
from cnv_trainer.dependencies import get_content_provider, get_session_registry
from cnv_trainer.exceptions import SessionFlowError, SessionLoadError, SessionNotFoundError
from cnv_trainer.logging_config import setup_logging
from cnv_trainer.models.enums import SessionPhase
from cnv_trainer.models.request import UserProfile
from cnv_trainer.models.response import ConnectionResult, FeedbackResult, Scenario
from cnv_trainer.models.session import AnsweredRecord
from cnv_trainer.services.faults import fault_message
from cnv_trainer.services.session_machine import TrainingSession

logger = logging.getLogger("cnv_trainer")

_FALLBACK_NOTICE = "Using built-in example content."


# ---------------------------------------------------------------------------
# Request / response bodies
# ---------------------------------------------------------------------------


class ConnectionTestRequest(BaseModel):
    api_key: str = Field(default="", description="Provider credential to check.")


class CreateSessionRequest(BaseModel):
    api_key: str = Field(default="", description="Provider credential for this session.")
    profile: UserProfile


class AnswerRequest(BaseModel):
    index: int = Field(..., ge=0, le=3, description="Option index in display order.")


class SessionView(BaseModel):
    """Everything the presentation layer needs to render the session."""

    session_id: str
    phase: SessionPhase
    user_name: str
    source_was_fallback: bool
    current_question_index: int
    total_questions: int
    score: int
    scenario: Optional[Scenario] = None
    options: list[str] = Field(default_factory=list)
    feedback: Optional[FeedbackResult] = None
    feedback_used_fallback: bool = False
    answers: list[AnsweredRecord] = Field(default_factory=list)
    notice: Optional[str] = None


class SummaryView(BaseModel):
    text: str
    used_fallback: bool


def _view(session: TrainingSession) -> SessionView:
    scenario = session.current_scenario
    notice = None
    if session.last_fault is not None:
        notice = f"{fault_message(session.last_fault.kind)} {_FALLBACK_NOTICE}"
    state = session.state
    return SessionView(
        session_id=session.session_id,
        phase=session.phase,
        user_name=session.profile.name,
        source_was_fallback=session.source_was_fallback,
        current_question_index=state.current_question_index,
        total_questions=state.total_questions,
        score=state.score,
        scenario=scenario,
        options=[text for _, text in scenario.options.ordered()] if scenario else [],
        feedback=session.last_feedback,
        feedback_used_fallback=session.last_feedback_used_fallback,
        answers=state.answers,
        notice=notice,
    )


def _get_session(session_id: str) -> TrainingSession:
    session = get_session_registry().get(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


# ---------------------------------------------------------------------------
# Lifespan: runs once at startup and shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown events for the FastAPI application."""
    settings: Settings = get_settings()
    setup_logging(settings.log_level, app_version=settings.app_version)

    logger.info(
        "CNV trainer dev server starting",
        extra={
            "step": "startup",
            "version": settings.app_version,
            "model": settings.provider_model,
            "mocks_enabled": settings.use_mocks,
        },
    )
    if settings.use_mocks:
        logger.warning(
            "Running with USE_MOCKS=true, provider is mocked",
            extra={"step": "startup"},
        )

    yield  # app is running

    await get_session_registry().clear()
    logger.info("CNV trainer dev server shutting down", extra={"step": "shutdown"})


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and return the configured FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CNV Trainer — Dev Server",
        description=(
            "Scenario generation, per-answer feedback and scoring for "
            "Nonviolent Communication training, with offline fallback content."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error mapping ────────────────────────────────
    @app.exception_handler(SessionNotFoundError)
    async def not_found_handler(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"error_code": "SESSION_NOT_FOUND", "message": exc.message},
        )

    @app.exception_handler(SessionFlowError)
    async def flow_error_handler(request: Request, exc: SessionFlowError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"error_code": "INVALID_SESSION_ACTION", "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            extra={"step": "unhandled_error", "error": str(exc)},
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred.",
                "detail": None,
            },
        )

    # ── Health check ─────────────────────────────────
    @app.get("/health", tags=["system"])
    async def health_check() -> dict:
        """Lightweight health check for dev server."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "mocks_enabled": settings.use_mocks,
        }

    # ── Provider ─────────────────────────────────────
    @app.post("/api/connection/test", tags=["provider"])
    async def test_connection(payload: ConnectionTestRequest) -> ConnectionResult:
        """Check the provider with the given key. Always 200."""
        provider = get_content_provider(payload.api_key)
        try:
            return await provider.test_connection()
        finally:
            await provider.aclose()

    # ── Sessions ─────────────────────────────────────
    @app.post("/api/sessions", tags=["sessions"], status_code=201)
    async def create_session(payload: CreateSessionRequest) -> SessionView:
        """Create a session and load its scenarios (generated or fallback)."""
        provider = get_content_provider(payload.api_key)
        session = TrainingSession(provider, payload.profile)
        await get_session_registry().add(session)
        try:
            await session.load_scenarios()
        except SessionLoadError as exc:
            # phase is LOAD_FAILED; the client offers a retry
            logger.warning(
                "Session created without scenarios",
                extra={"step": "session_create", "session_id": session.session_id, "error": exc.message},
            )
        return _view(session)

    @app.get("/api/sessions/{session_id}", tags=["sessions"])
    async def get_session(session_id: str) -> SessionView:
        return _view(_get_session(session_id))

    @app.post("/api/sessions/{session_id}/answers", tags=["sessions"])
    async def select_answer(session_id: str, payload: AnswerRequest) -> SessionView:
        """Answer the current question. Duplicate clicks are ignored."""
        session = _get_session(session_id)
        await session.select_answer(payload.index)
        return _view(session)

    @app.post("/api/sessions/{session_id}/continue", tags=["sessions"])
    async def continue_session(session_id: str) -> SessionView:
        session = _get_session(session_id)
        session.advance()
        return _view(session)

    @app.post("/api/sessions/{session_id}/retry", tags=["sessions"])
    async def retry_load(session_id: str) -> SessionView:
        session = _get_session(session_id)
        try:
            await session.retry_load()
        except SessionLoadError as exc:
            logger.warning(
                "Retry produced no scenarios",
                extra={"step": "session_retry", "session_id": session_id, "error": exc.message},
            )
        return _view(session)

    @app.get("/api/sessions/{session_id}/summary", tags=["sessions"])
    async def final_summary(session_id: str) -> SummaryView:
        session = _get_session(session_id)
        text = await session.final_summary()
        return SummaryView(text=text, used_fallback=session.summary_used_fallback)

    @app.delete("/api/sessions/{session_id}", tags=["sessions"], status_code=204)
    async def delete_session(session_id: str) -> None:
        if not await get_session_registry().remove(session_id):
            raise SessionNotFoundError(session_id)

    return app


# ---------------------------------------------------------------------------
# Module-level app instance (uvicorn points here: cnv_trainer.main:app)
# ---------------------------------------------------------------------------

app = create_app()
