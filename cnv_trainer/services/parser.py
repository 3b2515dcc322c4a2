"""
Response parser & validator — the single chokepoint between free-form
provider text and typed entities.

The provider is asked for JSON but may wrap it in prose or markdown
fences. extract_json() finds the first complete JSON object; the
validate_* functions turn it into frozen models or raise
ProviderFault(MALFORMED_RESPONSE). Nothing partially populated escapes.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from cnv_trainer.exceptions import ProviderFault
from cnv_trainer.models.enums import FaultKind
from cnv_trainer.models.response import FeedbackText, Scenario, ScenarioBatch

logger = logging.getLogger("cnv_trainer")

_decoder = json.JSONDecoder()


def _malformed(reason: str) -> ProviderFault:
    return ProviderFault(FaultKind.MALFORMED_RESPONSE, reason)


def extract_json(raw_text: str) -> dict[str, Any]:
    """Return the first JSON object embedded in ``raw_text``.

    Tries every ``{`` left to right and decodes greedily from there, so
    leading prose, trailing prose and code fences are all tolerated.

    Raises:
        ProviderFault: MALFORMED_RESPONSE if no object decodes.
    """
    if not raw_text:
        raise _malformed("Empty provider response")

    start = raw_text.find("{")
    while start != -1:
        try:
            obj, _ = _decoder.raw_decode(raw_text, start)
        except json.JSONDecodeError:
            start = raw_text.find("{", start + 1)
            continue
        return obj

    logger.warning(
        "No JSON object in provider response",
        extra={"step": "parse_extract", "raw_content": raw_text[:300]},
    )
    raise _malformed("JSON object not found in provider response")


def validate_scenarios(obj: Any) -> list[Scenario]:
    """Validate a ``{"scenarios": [...]}`` payload.

    Every element must carry a string ``situation`` and ``options`` with
    exactly passive/cnv/neutral/problematic as non-empty strings.

    Raises:
        ProviderFault: MALFORMED_RESPONSE on any violation.
    """
    if not isinstance(obj, dict):
        raise _malformed("Scenarios payload is not a JSON object")
    try:
        batch = ScenarioBatch.model_validate(obj)
    except ValidationError as exc:
        logger.warning(
            "Scenarios payload failed validation",
            extra={
                "step": "parse_scenarios",
                "error_count": exc.error_count(),
                "error": str(exc)[:300],
            },
        )
        raise _malformed(f"Invalid scenarios payload: {exc.error_count()} error(s)") from exc
    return list(batch.scenarios)


def validate_feedback(obj: Any) -> FeedbackText:
    """Validate a ``{"immediate": ..., "detailed": ...}`` payload.

    Both fields must be strings (empty is allowed). Extra keys such as
    ``points`` are ignored.

    Raises:
        ProviderFault: MALFORMED_RESPONSE on any violation.
    """
    if not isinstance(obj, dict):
        raise _malformed("Feedback payload is not a JSON object")
    try:
        return FeedbackText.model_validate(obj)
    except ValidationError as exc:
        logger.warning(
            "Feedback payload failed validation",
            extra={"step": "parse_feedback", "error": str(exc)[:300]},
        )
        raise _malformed("Invalid feedback payload") from exc


def parse_scenarios(raw_text: str) -> list[Scenario]:
    """extract_json() + validate_scenarios()."""
    return validate_scenarios(extract_json(raw_text))


def parse_feedback(raw_text: str) -> FeedbackText:
    """extract_json() + validate_feedback()."""
    return validate_feedback(extract_json(raw_text))
