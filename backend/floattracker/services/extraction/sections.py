"""
sections.py — Topical section selection over normalized filing text.

Cuts the normalized document down to the passages that talk about share
counts, capital stock, splits and offerings, so the prompt sent to the
completion service has a bounded size whatever the filing length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from floattracker.core.config import settings


@dataclass(frozen=True)
class SectionRule:
    category: str
    pattern: Pattern[str]


# Order matters: excerpts are concatenated in this order.
SECTION_RULES: List[SectionRule] = [
    SectionRule(
        "share_counts",
        re.compile(
            r"shares\s+of\s+(?:the\s+registrant'?s\s+)?(?:class\s+[a-z]\s+)?common\s+stock[^.]{0,80}?outstanding"
            r"|shares\s+outstanding"
            r"|outstanding\s+shares"
            r"|public\s+float"
            r"|held\s+by\s+non-?affiliates",
            re.IGNORECASE,
        ),
    ),
    SectionRule(
        "capital_stock",
        re.compile(
            r"description\s+of\s+(?:capital\s+stock|securities|share\s+capital)"
            r"|authorized\s+capital\s+stock"
            r"|capital\s+stock",
            re.IGNORECASE,
        ),
    ),
    SectionRule(
        "splits",
        re.compile(
            r"reverse\s+(?:stock\s+)?split"
            r"|stock\s+split"
            r"|\d+[-\s]for[-\s]\d+\s+(?:forward\s+)?split",
            re.IGNORECASE,
        ),
    ),
    SectionRule(
        "offerings",
        re.compile(
            r"(?:public|registered\s+direct|underwritten|at[-\s]the[-\s]market|secondary)\s+offering"
            r"|offering\s+price"
            r"|share\s+repurchase"
            r"|stock\s+buyback",
            re.IGNORECASE,
        ),
    ),
]

SECTION_SEPARATOR = "\n\n[...]\n\n"


def select_sections(
    text: str,
    excerpt_chars: Optional[int] = None,
    lead_chars: Optional[int] = None,
    fallback_chars: Optional[int] = None,
    max_chars: Optional[int] = None,
) -> str:
    """
    Return the topically relevant excerpt of `text`.

    One excerpt per rule category (first match wins), each starting
    `lead_chars` before the match and at most `excerpt_chars` long. With no
    match at all, the first `fallback_chars` characters are returned. The
    result never exceeds `max_chars`.
    """
    if not text:
        return ""

    excerpt_chars = excerpt_chars if excerpt_chars is not None else settings.SECTION_EXCERPT_CHARS
    lead_chars = lead_chars if lead_chars is not None else settings.SECTION_LEAD_CHARS
    fallback_chars = fallback_chars if fallback_chars is not None else settings.FALLBACK_EXCERPT_CHARS
    max_chars = max_chars if max_chars is not None else settings.MAX_EXCERPT_CHARS

    excerpts: List[str] = []
    for rule in SECTION_RULES:
        match = rule.pattern.search(text)
        if match is None:
            continue
        start = max(0, match.start() - lead_chars)
        excerpts.append(text[start:start + excerpt_chars])

    if not excerpts:
        return text[:min(fallback_chars, max_chars)]

    return SECTION_SEPARATOR.join(excerpts)[:max_chars]
