"""Data models for FanPlay moment analysis."""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Union


class Sport(str, Enum):
    """Declared sport. Only a hint: the engine may pivot to another sport."""

    AMERICAN_FOOTBALL = "American Football"
    BASKETBALL = "Basketball"
    SOCCER = "Soccer"
    TENNIS = "Tennis"
    BASEBALL = "Baseball"


class Persona(str, Enum):
    """Requested explanation depth."""

    BEGINNER = "beginner"
    NEW_FAN = "new_fan"
    HARDCORE = "hardcore"
    COACH = "coach"

    @property
    def label(self) -> str:
        return PERSONA_INFO[self]["label"]

    @property
    def description(self) -> str:
        return PERSONA_INFO[self]["desc"]


PERSONA_INFO: Dict[Persona, Dict[str, str]] = {
    Persona.BEGINNER: {"label": "Beginner", "desc": "No jargon, just basics"},
    Persona.NEW_FAN: {"label": "New Fan", "desc": "Contextual rules"},
    Persona.HARDCORE: {"label": "Hardcore", "desc": "Stats & historical weight"},
    Persona.COACH: {"label": "Coach", "desc": "Professional analysis"},
}


@dataclass
class MediaInput:
    """An uploaded clip or image."""
    filename: str
    mime_type: str
    data: bytes

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass
class AnalysisRequest:
    """One normalized analysis request. Created per call, never stored."""
    sport: Sport
    persona: Persona
    source_kind: Literal["url", "media"]
    source_payload: Union[str, MediaInput]
    source_key: str
    identification_hint: Optional[str] = None

    @property
    def is_url(self) -> bool:
        return self.source_kind == "url"


@dataclass
class EvidenceCitation:
    """A web source cited by the engine's grounding metadata."""
    title: str
    url: str

    def to_dict(self):
        return {"title": self.title, "url": self.url}


@dataclass
class Narrative:
    what_happened: str
    why_it_matters: str
    what_happens_next: str


@dataclass
class GuideResponse:
    """The explanation returned to the viewer."""
    identified_event: str
    foundational_rules: List[str]
    narrative: Narrative
    sources: Optional[List[EvidenceCitation]] = None
    # True when the engine drifted from a confirmed event and the hint was restored
    identification_overridden: bool = False

    def to_dict(self):
        return {
            "identifiedEvent": self.identified_event,
            "foundationalRules": list(self.foundational_rules),
            "whatHappened": self.narrative.what_happened,
            "whyItMatters": self.narrative.why_it_matters,
            "whatHappensNext": self.narrative.what_happens_next,
            "sources": [s.to_dict() for s in self.sources] if self.sources else None,
            "identificationOverridden": self.identification_overridden,
        }


@dataclass
class EngineReply:
    """Raw engine output before validation."""
    text: str
    grounding_chunks: List[dict] = field(default_factory=list)
