"""
Pytest configuration and fixtures.

The engine is never reached over the network: AnalysisSession gets a
FakeGateway that replays canned generateContent answers.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from fanplay.analyzer import AnalysisSession
from fanplay.errors import EngineUnavailableError
from fanplay.models import EngineReply

MATCH_URL = "https://example.com/watch?v=abc123"


def guide_json(
    event: str = "2008 Wimbledon Final: Nadal vs Federer",
    rules: Optional[List[str]] = None,
    **overrides,
) -> str:
    payload: Dict[str, Any] = {
        "identifiedEvent": event,
        "foundationalRules": rules if rules is not None else [
            "Points go 15, 30, 40, game.",
            "A set is won by the first player to six games with a two-game lead.",
            "The ball may bounce once before it is returned.",
        ],
        "whatHappened": "A passing shot down the line won the point.",
        "whyItMatters": "It saved a break point late in the fifth set.",
        "whatHappensNext": "The server needs one more point to hold.",
    }
    payload.update(overrides)
    return json.dumps(payload)


WEB_CHUNKS = [
    {"web": {"title": "Wimbledon 2008 recap", "uri": "https://example.org/recap"}},
    {"retrievedContext": {"uri": "gs://bucket/doc"}},
    {"web": {"uri": "https://example.org/stats"}},
]


class FakeGateway:
    """Replays queued replies or errors and records every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None

    def queue(self, reply):
        self.replies.append(reply)

    async def invoke(self, parts, instruction, schema, enable_search=True):
        self.calls.append({
            "parts": parts,
            "instruction": instruction,
            "schema": schema,
            "enable_search": enable_search,
        })
        if self.gate is not None:
            await self.gate.wait()
        if not self.replies:
            raise EngineUnavailableError()
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, EngineReply):
            return reply
        return EngineReply(text=reply, grounding_chunks=list(WEB_CHUNKS))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def session(gateway):
    return AnalysisSession(gateway, enable_search=True)
