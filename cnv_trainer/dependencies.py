"""
Dependency wiring — builds providers based on the USE_MOCKS config toggle.

USE_MOCKS=true  → MockContentProvider     (no network, no key needed)
USE_MOCKS=false → OpenAIContentProvider   (real provider endpoint)

There is no process-wide provider handle: every call to
get_content_provider() constructs a fresh provider bound to the given
credential, and the caller passes it into TrainingSession. Only the dev
server's SessionRegistry is a module-level singleton.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from cnv_trainer.config import get_settings
from cnv_trainer.services.mocks import MockContentProvider
from cnv_trainer.services.protocols import ContentProvider
from cnv_trainer.services.session_registry import SessionRegistry

# Lazy import to avoid loading the OpenAI SDK when mocks are active
# from cnv_trainer.services.provider import OpenAIContentProvider  # imported in _build_provider()

logger = logging.getLogger("cnv_trainer")

ProviderFactory = Callable[[str], ContentProvider]

# ── Module-level state (initialized on first access) ──
_session_registry: Optional[SessionRegistry] = None
_provider_factory: Optional[ProviderFactory] = None


def _build_provider(api_key: str) -> ContentProvider:
    settings = get_settings()
    if settings.use_mocks:
        logger.debug(
            "DI: Using MockContentProvider",
            extra={"step": "dependency_init"},
        )
        provider: ContentProvider = MockContentProvider(scenario_count=settings.scenario_count)
        provider.initialize(api_key)
        return provider

    from cnv_trainer.services.provider import OpenAIContentProvider

    logger.debug(
        "DI: Using OpenAIContentProvider",
        extra={"step": "dependency_init", "model": settings.provider_model},
    )
    return OpenAIContentProvider(api_key, settings=settings)


def get_content_provider(api_key: Optional[str] = None) -> ContentProvider:
    """Return a new provider bound to ``api_key``.

    Falls back to PROVIDER_API_KEY from settings when no key is given.
    """
    key = api_key if api_key else get_settings().provider_api_key
    factory = _provider_factory or _build_provider
    return factory(key)


def get_session_registry() -> SessionRegistry:
    """Return the dev server's session registry (created on first call)."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry(max_sessions=get_settings().max_sessions)
    return _session_registry


def reset_services() -> None:
    """Reset module state. For testing only, forces re-initialization.

    Registered sessions are dropped without awaiting their providers;
    shutdown paths use ``await get_session_registry().clear()`` instead.
    """
    global _session_registry, _provider_factory
    _session_registry = None
    _provider_factory = None


def override_provider_factory(factory: ProviderFactory) -> None:
    """Override how providers are built. For testing only."""
    global _provider_factory
    _provider_factory = factory
