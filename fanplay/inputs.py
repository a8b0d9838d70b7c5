"""Turns a link or an uploaded file into one AnalysisRequest."""

from __future__ import annotations

import mimetypes
import os
import re
from typing import Any, Optional, Union
from urllib.parse import parse_qs, urlparse

from fanplay.errors import InvalidInputError
from fanplay.models import AnalysisRequest, MediaInput, Persona, Sport

DEFAULT_MIME_TYPE = "application/octet-stream"

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{6,}$")
_PATH_PREFIXES = ("/shorts/", "/embed/", "/live/", "/v/")


def parse_sport(value: Union[str, Sport]) -> Sport:
    if isinstance(value, Sport):
        return value
    key = str(value or "").strip().lower()
    for sport in Sport:
        if key in (sport.value.lower(), sport.name.lower()):
            return sport
    valid = ", ".join(s.value for s in Sport)
    raise InvalidInputError(f"Unsupported sport '{value}'. Choose one of: {valid}.")


def parse_persona(value: Union[str, Persona]) -> Persona:
    if isinstance(value, Persona):
        return value
    key = str(value or "").strip().lower().replace(" ", "_")
    try:
        return Persona(key)
    except ValueError:
        valid = ", ".join(p.value for p in Persona)
        raise InvalidInputError(f"Unsupported persona '{value}'. Choose one of: {valid}.") from None


def extract_video_id(url: str) -> Optional[str]:
    """
    Best-effort video id from a YouTube-style link.
    Returns None when the link carries no recognizable id.
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    candidate = None

    if host.endswith("youtu.be"):
        candidate = parsed.path.lstrip("/").split("/")[0]
    else:
        v = parse_qs(parsed.query).get("v")
        if v:
            candidate = v[0]
        else:
            for prefix in _PATH_PREFIXES:
                if parsed.path.startswith(prefix):
                    candidate = parsed.path[len(prefix):].split("/")[0]
                    break

    if candidate and _VIDEO_ID_RE.match(candidate):
        return candidate
    return None


def media_from_file(fileobj: Any, filename: Optional[str] = None, mime_type: Optional[str] = None) -> MediaInput:
    """Read a binary file-like object into a MediaInput."""
    name = filename or os.path.basename(str(getattr(fileobj, "name", "") or "")) or "upload"
    data = fileobj.read()
    if isinstance(data, str):
        raise InvalidInputError("Uploaded media must be opened in binary mode.")
    mime = mime_type or mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
    return MediaInput(filename=name, mime_type=mime, data=data)


def normalize_request(
    sport: Union[str, Sport],
    persona: Union[str, Persona],
    source: Any,
    is_url: bool = False,
) -> AnalysisRequest:
    """
    Build the canonical request. Pure: no engine call, no session state.

    URL mode keys the source by the URL itself; media mode keys it by the
    file's display name.
    """
    sport_tag = parse_sport(sport)
    persona_tag = parse_persona(persona)

    if is_url:
        url = source.strip() if isinstance(source, str) else ""
        if not url:
            raise InvalidInputError()
        return AnalysisRequest(
            sport=sport_tag,
            persona=persona_tag,
            source_kind="url",
            source_payload=url,
            source_key=url,
        )

    if not isinstance(source, MediaInput) and not hasattr(source, "read"):
        raise InvalidInputError()

    media = source if isinstance(source, MediaInput) else media_from_file(source)
    if not media.data:
        raise InvalidInputError("The uploaded file is empty. Please choose another clip.")

    return AnalysisRequest(
        sport=sport_tag,
        persona=persona_tag,
        source_kind="media",
        source_payload=media,
        source_key=media.filename,
    )
