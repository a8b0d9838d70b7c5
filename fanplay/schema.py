from __future__ import annotations
from typing import Annotated, Any, Dict, List, Optional
import json
import logging
import re

from pydantic import BaseModel, Field, StringConstraints, ValidationError

from fanplay.errors import MalformedResponseError
from fanplay.models import GuideResponse, Narrative

logger = logging.getLogger(__name__)

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class GuidePayload(BaseModel):
    """Engine output as requested by RESPONSE_SCHEMA."""
    identifiedEvent: NonEmptyStr
    foundationalRules: List[NonEmptyStr] = Field(min_length=3, max_length=5)
    whatHappened: NonEmptyStr
    whyItMatters: NonEmptyStr
    whatHappensNext: NonEmptyStr


def try_parse_json(text: Optional[str]) -> Dict[str, Any]:
    """
    JSON object extraction that tolerates code fences or stray text around the object.
    Raises ValueError when no object can be decoded.
    """
    if text is None:
        raise ValueError("Empty response")
    s = _FENCE_RE.sub("", text.strip())

    # direct JSON
    if s.startswith("{") and s.endswith("}"):
        obj = json.loads(s)
    else:
        # try to extract first {...last}
        start = s.find("{")
        end = s.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object in response")
        obj = json.loads(s[start:end + 1])

    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


def parse_guide(text: Optional[str]) -> GuideResponse:
    """Parse raw engine text into a GuideResponse or raise MalformedResponseError."""
    preview = (text or "")[:200]
    try:
        payload = GuidePayload.model_validate(try_parse_json(text))
    except (ValueError, ValidationError) as e:
        logger.warning("[SCHEMA] Rejected engine output: %s | preview=%r", e, preview)
        raise MalformedResponseError() from e

    return GuideResponse(
        identified_event=payload.identifiedEvent,
        foundational_rules=list(payload.foundationalRules),
        narrative=Narrative(
            what_happened=payload.whatHappened,
            why_it_matters=payload.whyItMatters,
            what_happens_next=payload.whatHappensNext,
        ),
    )


def apply_identification_hint(guide: GuideResponse, hint: Optional[str]) -> GuideResponse:
    """
    Keep the confirmed event when the engine drifts away from it.

    Plain case-insensitive substring check, no semantic matching.
    """
    if not hint:
        return guide
    if hint.lower() in guide.identified_event.lower():
        return guide

    logger.warning(
        "[SCHEMA] Engine identified %r but the confirmed event is %r; keeping the confirmed event",
        guide.identified_event,
        hint,
    )
    guide.identified_event = hint
    guide.identification_overridden = True
    return guide
