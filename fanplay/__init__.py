"""FanPlay: persona-aware, fact-checked explanations of sports moments."""

from fanplay.analyzer import AnalysisSession
from fanplay.errors import (
    AnalysisSupersededError,
    EngineUnavailableError,
    FanPlayError,
    InvalidInputError,
    MalformedResponseError,
)
from fanplay.models import EvidenceCitation, GuideResponse, MediaInput, Persona, Sport

__all__ = [
    "AnalysisSession",
    "AnalysisSupersededError",
    "EngineUnavailableError",
    "EvidenceCitation",
    "FanPlayError",
    "GuideResponse",
    "InvalidInputError",
    "MalformedResponseError",
    "MediaInput",
    "Persona",
    "Sport",
]
