"""FastAPI backend for FanPlay."""

import logging
import time
import uuid
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from fanplay.analyzer import AnalysisSession
from fanplay.config import Config
from fanplay.errors import (
    AnalysisSupersededError,
    EngineUnavailableError,
    FanPlayError,
    InvalidInputError,
    MalformedResponseError,
)
from fanplay.inputs import DEFAULT_MIME_TYPE, normalize_request
from fanplay.models import MediaInput, Persona, Sport
from fanplay.providers import EngineGateway, create_gateway

logger = logging.getLogger(__name__)

app = FastAPI(title="FanPlay")

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    InvalidInputError: 400,
    AnalysisSupersededError: 409,
    MalformedResponseError: 422,
    EngineUnavailableError: 502,
}

# Initialize the engine gateway based on configuration
gateway: Optional[EngineGateway]
try:
    gateway = create_gateway(Config.PROVIDER)
    logger.info("Engine gateway initialized: %s", Config.PROVIDER)
except ValueError as e:
    logger.error("Engine gateway not available: %s", e)
    gateway = None

# In-memory sessions, one identification lock each. Nothing is persisted.
# Insertion order is least recently used first.
sessions: Dict[str, AnalysisSession] = {}
session_seen: Dict[str, float] = {}


class OptionItem(BaseModel):
    id: str
    label: str
    description: str = ""


class OptionsResponse(BaseModel):
    sports: List[OptionItem]
    personas: List[OptionItem]


def require_gateway() -> EngineGateway:
    if gateway is None:
        raise HTTPException(
            status_code=503,
            detail="Analysis engine is not configured. Please check your configuration and API keys.",
        )
    return gateway


def evict_sessions(now: float) -> None:
    """Drop idle sessions, then the least recently used ones past the cap."""
    for sid in list(sessions):
        if now - session_seen.get(sid, 0.0) <= Config.SESSION_TTL_SECONDS:
            break
        drop(sid)
    while len(sessions) > Config.MAX_SESSIONS:
        drop(next(iter(sessions)))


def drop(session_id: str) -> Optional[AnalysisSession]:
    session_seen.pop(session_id, None)
    session = sessions.pop(session_id, None)
    if session is not None:
        session.reset()
    return session


def find_session(session_id: Optional[str]) -> Tuple[str, AnalysisSession]:
    """
    Existing session for a known id, otherwise a fresh one under a server-issued id.
    Fresh sessions are only stored by keep_session() after a successful analysis.
    """
    engine = require_gateway()
    evict_sessions(time.monotonic())
    session = sessions.get(session_id) if session_id else None
    if session is not None:
        return session_id, session
    return uuid.uuid4().hex, AnalysisSession(engine)


def keep_session(session_id: str, session: AnalysisSession) -> None:
    # Re-insert so dict order stays least recently used first
    sessions.pop(session_id, None)
    sessions[session_id] = session
    session_seen[session_id] = time.monotonic()
    evict_sessions(session_seen[session_id])


@app.get("/health")
async def health():
    """Configuration status."""
    return {
        "provider": Config.PROVIDER,
        "model": Config.GEMINI_MODEL,
        "ready": gateway is not None,
        "missing": Config.validate(),
        "sessions": len(sessions),
    }


@app.get("/options", response_model=OptionsResponse)
async def options():
    """Sports and personas the UI can offer."""
    return OptionsResponse(
        sports=[OptionItem(id=s.value, label=s.value) for s in Sport],
        personas=[OptionItem(id=p.value, label=p.label, description=p.description) for p in Persona],
    )


@app.post("/analyze")
async def analyze(
    sport: str = Form(...),
    persona: str = Form(...),
    url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    session_id: Optional[str] = Form(None),
):
    """Analyze a moment from a link or an uploaded clip. A link wins over a file."""
    try:
        if url and url.strip():
            request = normalize_request(sport, persona, url, is_url=True)
        elif file is not None:
            media = MediaInput(
                filename=file.filename or "upload",
                mime_type=file.content_type or DEFAULT_MIME_TYPE,
                data=await file.read(),
            )
            request = normalize_request(sport, persona, media, is_url=False)
        else:
            raise InvalidInputError()

        sid, session = find_session(session_id)
        refresh = session.state.needs_refresh(request.source_key, request.persona)
        result = await session.analyze_request(request)
    except FanPlayError as e:
        status = ERROR_STATUS.get(type(e), 500)
        raise HTTPException(status_code=status, detail=e.user_message)

    keep_session(sid, session)
    return {
        "sessionId": sid,
        "refresh": refresh,
        "result": result.to_dict(),
    }


@app.delete("/sessions/{session_id}")
async def drop_session(session_id: str):
    """Forget a session and its confirmed event."""
    if drop(session_id) is None:
        raise HTTPException(status_code=404, detail="Unknown session.")
    return {"sessionId": session_id, "status": "dropped"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)
