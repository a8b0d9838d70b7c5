"""Evidence citations from the engine's grounding metadata."""

from typing import Any, Iterable, List, Optional

from fanplay.models import EvidenceCitation

DEFAULT_SOURCE_TITLE = "Source"


def extract_sources(chunks: Optional[Iterable[Any]]) -> Optional[List[EvidenceCitation]]:
    """
    Keep chunks that carry a web citation with a URL, in engine order.

    A missing title becomes "Source"; a repeated URL keeps its first entry.
    Returns None when nothing is left. No capping here, display limits belong to the UI.
    """
    sources: List[EvidenceCitation] = []
    seen = set()

    for chunk in chunks or []:
        if not isinstance(chunk, dict):
            continue
        web = chunk.get("web")
        if not isinstance(web, dict):
            continue
        url = str(web.get("uri") or "").strip()
        if not url or url in seen:
            continue
        title = str(web.get("title") or "").strip() or DEFAULT_SOURCE_TITLE
        seen.add(url)
        sources.append(EvidenceCitation(title=title, url=url))

    return sources or None
