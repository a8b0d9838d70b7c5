from dataclasses import dataclass
from typing import Optional

from fanplay.models import Persona


@dataclass
class IdentificationState:
    """
    Per-session identification lock.

    Locked once an analysis succeeds for a source; a follow-up request for the
    same source key gets the confirmed event back as its hint. Only successful
    analyses call confirm(), so a failure never moves the lock.
    """
    last_source_key: Optional[str] = None
    confirmed_event: Optional[str] = None
    last_persona: Optional[Persona] = None

    def is_locked_for(self, source_key: str) -> bool:
        return bool(self.confirmed_event) and source_key == self.last_source_key

    def hint_for(self, source_key: str) -> Optional[str]:
        # A new source only replaces the lock once it succeeds; until then the old key keeps its hint.
        if self.is_locked_for(source_key):
            return self.confirmed_event
        return None

    def needs_refresh(self, source_key: str, persona: Persona) -> bool:
        """True when only the persona changed for a source that already has a result."""
        return self.is_locked_for(source_key) and persona != self.last_persona

    def confirm(self, source_key: str, event: str, persona: Persona) -> None:
        self.last_source_key = source_key
        self.confirmed_event = event
        self.last_persona = persona

    def reset(self) -> None:
        self.last_source_key = None
        self.confirmed_event = None
        self.last_persona = None
