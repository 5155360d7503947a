"""
heuristics.py — Pattern-based extraction of share-count facts.

Runs over the FULL normalized filing text (not the trimmed excerpt) and
recovers:
    (a) outstanding share count ("... shares of common stock outstanding")
    (b) public float in dollars ("aggregate market value ... non-affiliates")
    (c) the as-of date next to the public float figure
    (d) a coarse split-ratio signal ("1-for-10 reverse stock split")

Rules are tried in order within each field; the first hit wins. Every rule
either yields a value or leaves its field None. The split signal is reported
through `signals` only and never becomes a corporate action by itself.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, List, Optional, Pattern, Tuple

from dateutil import parser as dtparser

from floattracker.core.logging import get_logger
from floattracker.services.extraction.types import ExtractionRecord, ExtractorResult

logger = get_logger(__name__)

HEURISTIC_SOURCE = "heuristic"
HEURISTIC_PRECEDENCE = 10

# Grouped thousands ("48,000,000") or a bare run of 4+ digits.
_SHARE_COUNT = r"(?<![\d,.])(?P<num>\d{1,3}(?:,\d{3})+|\d{4,})"
# Grouped thousands only; used where a year could sit in front of the figure.
_GROUPED_COUNT = r"(?<![\d,.])(?P<num>\d{1,3}(?:,\d{3})+)"
_AMOUNT = r"(?P<num>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
_SCALE = r"(?:\s*(?P<scale>thousand|million|billion)\b)?"
_COMMON_STOCK = r"(?:the\s+(?:registrant|issuer|company)'?s\s+)?(?:class\s+[a-z]\s+)?common\s+(?:stock|shares)"
_PAR_VALUE = (
    r"(?:,?\s*(?:(?:\$\s?[\d.]+|no)\s+par\s+value|par\s+value\s+\$\s?[\d.]+)(?:\s+per\s+share)?,?)?"
)

SCALE_MULTIPLIERS = {
    "thousand": 1_000,
    "million": 1_000_000,
    "billion": 1_000_000_000,
}

OUTSTANDING_RULES: List[Pattern[str]] = [
    # "48,000,000 shares of common stock, $0.001 par value, outstanding"
    # "48,000,000 shares of common stock, par value $0.0001 per share, outstanding"
    re.compile(
        _SHARE_COUNT + r"\s+shares\s+of\s+" + _COMMON_STOCK + _PAR_VALUE + r"[^.]{0,60}?\boutstanding",
        re.IGNORECASE,
    ),
    # "Shares outstanding as of March 1, 2024: 48,000,000"
    re.compile(
        r"(?:shares\s+outstanding|outstanding\s+shares)(?:\s+of\s+" + _COMMON_STOCK + r")?[^.]{0,80}?"
        + _GROUPED_COUNT,
        re.IGNORECASE,
    ),
    # "48,000,000 shares issued and outstanding"
    re.compile(
        _SHARE_COUNT + r"\s+shares\s+(?:were\s+|are\s+)?(?:issued\s+and\s+)?outstanding",
        re.IGNORECASE,
    ),
    # "48.2 million shares of common stock outstanding"
    re.compile(
        r"(?<![\d.])(?P<num>\d+(?:\.\d+)?)\s*(?P<scale>thousand|million|billion)\s+shares\s+(?:of\s+"
        + _COMMON_STOCK + r"\s+)?(?:were\s+|are\s+)?(?:issued\s+and\s+)?outstanding",
        re.IGNORECASE,
    ),
]

PUBLIC_FLOAT_RULES: List[Pattern[str]] = [
    re.compile(
        r"aggregate\s+market\s+value[^$]{0,400}?non-?affiliates[^$]{0,300}?\$\s*" + _AMOUNT + _SCALE,
        re.IGNORECASE,
    ),
    re.compile(
        r"public\s+float[^$]{0,150}?\$\s*" + _AMOUNT + _SCALE,
        re.IGNORECASE,
    ),
]

SPLIT_RULE = re.compile(
    r"(?<!\d)(?P<new>\d{1,3})[-\s]for[-\s](?P<old>\d{1,3})\s+(?P<reverse>reverse\s+)?(?:stock\s+|forward\s+)?split",
    re.IGNORECASE,
)

_MONTH_NAME = (
    r"(?:January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)\.?"
)
_ORDINAL = r"(?:st|nd|rd|th)?"

# Candidate finders only; dateutil turns the captured text into a date.
DATE_RULES: List[Pattern[str]] = [
    # "June 30, 2023" / "June 30th, 2023"
    re.compile(r"\b(?P<date>" + _MONTH_NAME + r"\s+\d{1,2}" + _ORDINAL + r",?\s+\d{4})\b", re.IGNORECASE),
    # "30 June 2023"
    re.compile(r"\b(?P<date>\d{1,2}" + _ORDINAL + r"\s+(?:of\s+)?" + _MONTH_NAME + r",?\s+\d{4})\b", re.IGNORECASE),
    # "6/30/2023"
    re.compile(r"\b(?P<date>\d{1,2}/\d{1,2}/\d{4})\b"),
]

# How far past the float figure a date mention still counts as its as-of date.
DATE_WINDOW_AFTER = 250


def parse_number(raw: str, scale: Optional[str] = None) -> Optional[float]:
    """'1,234.5' + 'million' → 1234500000.0; None if unparseable."""
    try:
        value = float(raw.replace(",", ""))
    except (AttributeError, ValueError):
        return None
    if scale:
        value *= SCALE_MULTIPLIERS.get(scale.lower(), 1)
    return value


def _parse_date_match(match: re.Match) -> Optional[date]:
    try:
        return dtparser.parse(match.group("date"), fuzzy=True).date()
    except (ValueError, OverflowError):
        return None


def find_first_date(text: str) -> Optional[date]:
    """Earliest-positioned valid calendar date mention in `text`."""
    found: List[Tuple[int, date]] = []
    for rule in DATE_RULES:
        for match in rule.finditer(text):
            parsed = _parse_date_match(match)
            if parsed is not None:
                found.append((match.start(), parsed))
                break
    if not found:
        return None
    return min(found, key=lambda item: item[0])[1]


def extract_outstanding_shares(text: str) -> Optional[int]:
    for rule in OUTSTANDING_RULES:
        match = rule.search(text)
        if match is None:
            continue
        value = parse_number(match.group("num"), match.groupdict().get("scale"))
        if value is not None:
            return int(round(value))
    return None


def extract_public_float(text: str) -> Tuple[Optional[float], Optional[date]]:
    """Public float in dollars plus the date mentioned with it."""
    for rule in PUBLIC_FLOAT_RULES:
        match = rule.search(text)
        if match is None:
            continue
        value = parse_number(match.group("num"), match.group("scale"))
        if value is None:
            continue
        window = text[match.start():match.end() + DATE_WINDOW_AFTER]
        return value, find_first_date(window)
    return None, None


def detect_split_signal(text: str) -> Optional[Dict[str, Any]]:
    match = SPLIT_RULE.search(text)
    if match is None:
        return None
    return {
        "split_ratio": f"{int(match.group('new'))}-for-{int(match.group('old'))}",
        "reverse": bool(match.group("reverse")),
    }


class HeuristicExtractor:
    """Pattern-rule extractor; yields a record even when every field is None."""

    source = HEURISTIC_SOURCE
    precedence = HEURISTIC_PRECEDENCE

    def extract(self, text: str) -> ExtractorResult:
        text = text or ""
        outstanding = extract_outstanding_shares(text)
        public_float_usd, public_float_date = extract_public_float(text)

        signals: Dict[str, Any] = {}
        split = detect_split_signal(text)
        if split:
            signals["split"] = split
            logger.info("Split signal detected: %s%s", split["split_ratio"], " (reverse)" if split["reverse"] else "")

        record = ExtractionRecord(
            outstanding_shares=outstanding,
            float_shares=None,
            public_float_usd=public_float_usd,
            public_float_date=public_float_date,
            corporate_actions=None,
        )
        logger.debug(
            "Heuristic extraction: outstanding=%s public_float_usd=%s as_of=%s",
            outstanding, public_float_usd, public_float_date,
        )
        return ExtractorResult(
            source=self.source,
            precedence=self.precedence,
            record=record,
            signals=signals,
        )
