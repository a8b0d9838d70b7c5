from __future__ import annotations
from typing import Any, Dict, List, Optional

from fanplay.inputs import extract_video_id
from fanplay.models import AnalysisRequest, Persona, Sport

# One style directive per persona. Kept flat so each tone can change on its own.
PERSONA_STYLES: Dict[Persona, str] = {
    Persona.BEGINNER: (
        "Assume ZERO prior knowledge. Use simple language and everyday analogies "
        "(e.g., 'it's like tag'). No jargon."
    ),
    Persona.NEW_FAN: (
        "Use standard terminology but explain each term briefly. "
        "Focus on why this play matters in a typical game."
    ),
    Persona.HARDCORE: (
        "Focus on player stats, historical context, team rivalries, "
        "and the specific stakes for the season."
    ),
    Persona.COACH: (
        "Analyze the technical execution, formations, biomechanics, "
        "and strategic decision-making."
    ),
}

# Gemini responseSchema (OpenAPI subset). Same for every persona.
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "identifiedEvent": {"type": "STRING"},
        "foundationalRules": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "minItems": 3,
            "maxItems": 5,
        },
        "whatHappened": {"type": "STRING"},
        "whyItMatters": {"type": "STRING"},
        "whatHappensNext": {"type": "STRING"},
    },
    "required": [
        "identifiedEvent",
        "foundationalRules",
        "whatHappened",
        "whyItMatters",
        "whatHappensNext",
    ],
}


def _identification_block(sport: Sport, hint: Optional[str]) -> str:
    if hint:
        return f"""IDENTIFICATION (ALREADY CONFIRMED):
The event in this clip has already been verified as: "{hint}".
- Stay on this exact event. Set identifiedEvent to "{hint}".
- Reuse the facts you already established for it; do not search again from scratch.
- Only use search to add detail that fits the confirmed event."""

    return f"""IDENTIFICATION (REQUIRED FIRST STEP):
- Determine the exact event: competition, date, and participants (teams or players).
- Use web search and what you can see in the clip as evidence. Do not trust the declared sport ({sport.value}) on its own.
- Put the verified match title in identifiedEvent (e.g. "2024 Super Bowl - Chiefs vs 49ers")."""


def build_instruction(persona: Persona, sport: Sport, hint: Optional[str] = None) -> str:
    """
    Single instruction builder shared by every request.
    The tone comes from PERSONA_STYLES; the identification block depends on the hint.
    """
    style = PERSONA_STYLES[persona]
    return f"""You are a world-class AI Sports Analyst explaining a moment to a {persona.label.lower()} viewer.

{_identification_block(sport, hint)}

SPORT OVERRIDE RULE:
The viewer said this is {sport.value}. If verified evidence shows a different sport, silently switch to the sport the evidence supports, explain the correction in whatHappened, and continue. Never refuse or fail because of a wrong declared sport.

TASK:
1. Identify the specific game as described above.
2. Provide 3-5 foundationalRules for this sport, each a short rule with a brief explanation.
3. Explain the specific moment: whatHappened, whyItMatters (why players and crowd react this way), whatHappensNext.

PERSONA RULES ({persona.value.upper()}):
{style}

Output JSON only, matching the response schema. No markdown. No extra keys."""


def build_content_parts(request: AnalysisRequest) -> List[Dict[str, Any]]:
    """Content parts for the engine: link branch or inline media branch."""
    sport = request.sport.value

    if request.is_url:
        url = request.source_payload
        video_id = extract_video_id(url)
        id_line = f" The video id is {video_id}." if video_id else ""
        return [{
            "text": (
                f"Analyze this {sport} moment from: {url}.{id_line} "
                "Resolve the link, find the match it shows, and cross-reference "
                "public play-by-play records for that moment."
            )
        }]

    media = request.source_payload
    return [
        {"inlineData": {"mimeType": media.mime_type, "data": media.to_base64()}},
        {
            "text": (
                f"Analyze this {sport} visual for a {request.persona.label.lower()} viewer. "
                "Identify gear, team kits, logos, and venue markers, then cross-reference "
                "them to find the most likely match."
            )
        },
    ]
