"""
llm_extractor.py — AI extraction pass over the selected filing excerpt.

Builds a fixed-shape prompt, sends it through the completion capability and
turns the reply into an ExtractionRecord. The reply is untrusted: code fences
and chatter around the JSON object are stripped, and every field is checked
for type before it reaches the merger (wrong types become None, unknown
action types become "other").
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from floattracker.core.errors import ParseError, ServiceError
from floattracker.core.logging import get_logger
from floattracker.services.extraction.types import (
    ActionType,
    CorporateActionEntry,
    ExtractionRecord,
    ExtractorResult,
    VALID_ACTION_TYPES,
    parse_iso_date,
)

logger = get_logger(__name__)

LLM_SOURCE = "llm"
LLM_PRECEDENCE = 100

SYSTEM_INSTRUCTION = (
    "You are a financial data extraction expert. "
    "Always return valid JSON only, no markdown or explanation."
)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")
_SPLIT_RATIO_RE = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*(?:-?\s*for\s*-?|:|/|to)\s*(\d+(?:\.\d+)?)\s*$",
    re.IGNORECASE,
)


def build_prompt(filing_type: str, excerpt: str) -> str:
    action_types = "|".join(a.value for a in ActionType)
    return f"""Analyze this SEC {filing_type} filing and extract:

1. Outstanding shares count (total shares issued)
2. Float shares (shares available for public trading, excluding restricted/insider shares)
3. Public float in US dollars (aggregate market value held by non-affiliates) and the date it is measured at
4. Any corporate actions (stock splits, reverse splits, offerings, buybacks, warrant exercises, dilution)

Filing excerpt:
{excerpt}

Return ONLY valid JSON in this exact format:
{{
  "outstanding_shares": number or null,
  "float_shares": number or null,
  "public_float_usd": number or null,
  "public_float_date": "YYYY-MM-DD" or null,
  "corporate_actions": [
    {{
      "action_type": "{action_types}",
      "action_date": "YYYY-MM-DD",
      "description": "brief description",
      "shares_before": number or null,
      "shares_after": number or null,
      "split_ratio": "e.g., 2-for-1" or null,
      "impact_description": "how this affects float/shares"
    }}
  ]
}}"""


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content or "").replace("```", "").strip()


def load_json_object(content: str) -> Dict[str, Any]:
    """
    Parse the JSON object out of a completion reply.

    Raises:
        ParseError: no JSON object could be recovered
    """
    cleaned = strip_code_fences(content)
    if not cleaned:
        raise ParseError("Empty completion response")

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        # Tolerate chatter around the object: keep the outermost {...}
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ParseError("Invalid JSON from completion service")
        try:
            payload = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON from completion service: {e}") from e

    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


# ------------------------------------------------------------------ #
# Field validation
# ------------------------------------------------------------------ #

def _coerce_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.replace(",", "").replace("$", "").strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _coerce_count(value: Any) -> Optional[int]:
    number = _coerce_amount(value)
    return int(round(number)) if number is not None else None


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_action_type(value: Any) -> str:
    if not isinstance(value, str):
        return ActionType.OTHER.value
    key = re.sub(r"[\s\-]+", "_", value.strip().lower())
    return key if key in VALID_ACTION_TYPES else ActionType.OTHER.value


def normalize_split_ratio(value: Any) -> Optional[str]:
    """'2:1', '2 for 1', '2-for-1' → '2-for-1'; anything else → None."""
    if not isinstance(value, str):
        return None
    match = _SPLIT_RATIO_RE.match(value)
    if match is None:
        return None
    new, old = match.group(1), match.group(2)
    return f"{new}-for-{old}"


def _parse_action(entry: Any) -> Optional[CorporateActionEntry]:
    if not isinstance(entry, dict):
        logger.warning("Skipping corporate action entry that is not an object: %r", entry)
        return None
    return CorporateActionEntry(
        action_type=normalize_action_type(entry.get("action_type")),
        action_date=parse_iso_date(entry.get("action_date")),
        description=_coerce_text(entry.get("description")) or "",
        shares_before=_coerce_count(entry.get("shares_before")),
        shares_after=_coerce_count(entry.get("shares_after")),
        split_ratio=normalize_split_ratio(entry.get("split_ratio")),
        impact_description=_coerce_text(entry.get("impact_description")),
    )


def parse_extraction_payload(content: str) -> ExtractionRecord:
    """
    Validate a completion reply into an ExtractionRecord.

    Raises:
        ParseError: reply holds no JSON object
    """
    payload = load_json_object(content)

    actions: Optional[List[CorporateActionEntry]] = None
    raw_actions = payload.get("corporate_actions")
    if isinstance(raw_actions, list):
        actions = [a for a in (_parse_action(entry) for entry in raw_actions) if a is not None]
    elif raw_actions is not None:
        logger.warning("corporate_actions is not a list: %r", raw_actions)

    return ExtractionRecord(
        outstanding_shares=_coerce_count(payload.get("outstanding_shares")),
        float_shares=_coerce_count(payload.get("float_shares")),
        public_float_usd=_coerce_amount(payload.get("public_float_usd")),
        public_float_date=parse_iso_date(payload.get("public_float_date")),
        corporate_actions=actions,
    )


class LLMExtractor:
    """
    AI extractor. Service and parse failures are returned on the result
    (record=None, error set) instead of raised, so the filing continues on
    heuristic data alone.
    """

    source = LLM_SOURCE
    precedence = LLM_PRECEDENCE

    def __init__(self, completion: Any) -> None:
        self._completion = completion

    def extract(self, filing_type: str, excerpt: str) -> ExtractorResult:
        if not excerpt:
            logger.info("No filing text to send for AI extraction; skipping")
            return ExtractorResult(source=self.source, precedence=self.precedence, record=None)

        prompt = build_prompt(filing_type, excerpt)
        try:
            content = self._completion.complete(prompt, SYSTEM_INSTRUCTION)
        except ServiceError as e:
            logger.error("AI extraction failed: %s", e)
            return ExtractorResult(source=self.source, precedence=self.precedence, record=None, error=e)

        logger.debug("AI response: %s", content)
        try:
            record = parse_extraction_payload(content)
        except ParseError as e:
            logger.error("Failed to parse AI response: %s", e)
            return ExtractorResult(source=self.source, precedence=self.precedence, record=None, error=e)

        return ExtractorResult(source=self.source, precedence=self.precedence, record=record)
