"""Tests for grounding source extraction."""
from fanplay.models import EvidenceCitation
from fanplay.sources import extract_sources


def test_web_chunks_only_with_default_title():
    chunks = [
        {"web": {"title": "A", "uri": "u1"}},
        {"notWeb": True},
        {"web": {"uri": "u2"}},
    ]
    assert extract_sources(chunks) == [
        EvidenceCitation(title="A", url="u1"),
        EvidenceCitation(title="Source", url="u2"),
    ]


def test_no_citations():
    assert extract_sources(None) is None
    assert extract_sources([]) is None
    assert extract_sources([{"notWeb": True}, {"web": {"title": "No link"}}]) is None


def test_duplicates_keep_first_and_order():
    chunks = [
        {"web": {"title": "First", "uri": "https://a.example"}},
        {"web": {"title": "Second", "uri": "https://b.example"}},
        {"web": {"title": "Again", "uri": "https://a.example"}},
        {"web": {"title": "  ", "uri": "https://c.example"}},
    ]
    sources = extract_sources(chunks)
    assert [s.url for s in sources] == ["https://a.example", "https://b.example", "https://c.example"]
    assert [s.title for s in sources] == ["First", "Second", "Source"]


def test_no_capping():
    chunks = [{"web": {"title": f"T{i}", "uri": f"https://x.example/{i}"}} for i in range(25)]
    assert len(extract_sources(chunks)) == 25


def test_garbage_chunks_are_skipped():
    assert extract_sources(["web", 3, {"web": "u1"}, {"web": {"uri": ""}}]) is None
