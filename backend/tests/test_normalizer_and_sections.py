"""
Unit tests for normalizer.py and sections.py
"""

from floattracker.services.extraction.normalizer import normalize_document
from floattracker.services.extraction.sections import SECTION_SEPARATOR, select_sections


# Normalizer
def test_normalize_strips_tags_scripts_and_whitespace():
    raw = (
        "<html><head><style>p { color: red; }</style>"
        "<script>var shares = 1;</script></head>"
        "<body><p>Hello</p>\n\n<p>World   !</p></body></html>"
    )
    assert normalize_document(raw) == "Hello World !"


def test_normalize_empty_input():
    assert normalize_document("") == ""
    assert normalize_document(None) == ""
    assert normalize_document("   \n ") == ""


def test_normalize_plain_text_passthrough():
    assert normalize_document("48,000,000 shares\toutstanding") == "48,000,000 shares outstanding"


# Section selection
def test_select_sections_fallback_is_leading_text():
    text = "x" * 30000
    excerpt = select_sections(text, excerpt_chars=4000, lead_chars=500, fallback_chars=15000, max_chars=20000)
    assert excerpt == "x" * 15000


def test_select_sections_fallback_respects_max_chars():
    text = "y" * 30000
    excerpt = select_sections(text, fallback_chars=15000, max_chars=1000)
    assert len(excerpt) == 1000


def test_select_sections_picks_topical_passages_in_rule_order():
    filler = "lorem ipsum " * 500
    text = (
        filler
        + "We effected a 1-for-10 reverse stock split in May. "
        + filler
        + "As of March 1 there were 48,000,000 shares outstanding. "
        + filler
    )
    excerpt = select_sections(text, excerpt_chars=200, lead_chars=20, fallback_chars=15000, max_chars=20000)

    parts = excerpt.split(SECTION_SEPARATOR)
    assert len(parts) == 2
    # share_counts comes before splits regardless of document position
    assert "shares outstanding" in parts[0]
    assert "reverse stock split" in parts[1]
    assert all(len(p) <= 200 for p in parts)


def test_select_sections_output_is_bounded():
    block = "public float capital stock stock split public offering " * 2000
    excerpt = select_sections(block, excerpt_chars=50000, lead_chars=0, max_chars=5000)
    assert len(excerpt) <= 5000


def test_select_sections_empty_text():
    assert select_sections("") == ""
