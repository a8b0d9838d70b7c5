from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from fanplay.config import Config
from fanplay.errors import AnalysisSupersededError
from fanplay.inputs import normalize_request
from fanplay.models import AnalysisRequest, GuideResponse, Persona, Sport
from fanplay.prompt import RESPONSE_SCHEMA, build_content_parts, build_instruction
from fanplay.providers import EngineGateway
from fanplay.schema import apply_identification_hint, parse_guide
from fanplay.sources import extract_sources
from fanplay.state import IdentificationState

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    One viewer's analysis session.

    At most one engine call is in flight. A new analyze() cancels the pending
    call of an older one and waits its turn; the older caller then gets
    AnalysisSupersededError and its response, if any, is dropped. The
    identification lock only moves after a successful analysis.
    """

    def __init__(
        self,
        gateway: EngineGateway,
        enable_search: Optional[bool] = None,
        state: Optional[IdentificationState] = None,
    ):
        self.gateway = gateway
        self.enable_search = Config.EVIDENCE_SEARCH if enable_search is None else enable_search
        self.state = state or IdentificationState()

        self._lock = asyncio.Lock()
        self._generation = 0
        self._pending: Optional[asyncio.Future] = None

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def cancel(self) -> bool:
        """Cancel the in-flight engine call. Returns True if there was one."""
        self._generation += 1
        return self._cancel_pending()

    def reset(self) -> None:
        self.cancel()
        self.state.reset()

    def _cancel_pending(self) -> bool:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            return True
        return False

    async def analyze(
        self,
        sport: Union[str, Sport],
        persona: Union[str, Persona],
        source: Any,
        is_url: bool = False,
        hint: Optional[str] = None,
    ) -> GuideResponse:
        """
        Analyze a moment from a link (is_url=True) or an uploaded clip.

        Raises InvalidInputError before anything else happens when there is no
        usable source. hint overrides the session's own confirmed event.
        """
        request = normalize_request(sport, persona, source, is_url)
        return await self.analyze_request(request, hint=hint)

    async def analyze_request(self, request: AnalysisRequest, hint: Optional[str] = None) -> GuideResponse:
        self._generation += 1
        generation = self._generation
        self._cancel_pending()

        async with self._lock:
            if generation != self._generation:
                raise AnalysisSupersededError()

            if hint is None:
                hint = self.state.hint_for(request.source_key)
            request.identification_hint = hint

            instruction = build_instruction(request.persona, request.sport, hint)
            parts = build_content_parts(request)
            logger.info(
                "[ANALYZE] %s source=%r sport=%s persona=%s hint=%r",
                request.source_kind, request.source_key, request.sport.value,
                request.persona.value, hint,
            )

            self._pending = asyncio.ensure_future(
                self.gateway.invoke(parts, instruction, RESPONSE_SCHEMA, self.enable_search)
            )
            try:
                reply = await self._pending
            except asyncio.CancelledError:
                if generation != self._generation:
                    logger.info("[ANALYZE] Superseded while waiting on the engine: %r", request.source_key)
                    raise AnalysisSupersededError() from None
                raise
            finally:
                self._pending = None

            # Stale answer for a request that was replaced
            if generation != self._generation:
                raise AnalysisSupersededError()

            guide = parse_guide(reply.text)
            guide = apply_identification_hint(guide, hint)
            guide.sources = extract_sources(reply.grounding_chunks)

            self.state.confirm(request.source_key, guide.identified_event, request.persona)
            logger.info(
                "[ANALYZE] Identified %r (%d sources)",
                guide.identified_event, len(guide.sources or []),
            )
            return guide
