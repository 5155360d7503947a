"""
merger.py — Precedence merge of extractor results into one record.

Pure function over (source, record, precedence) results:
- Scalar fields: the highest-precedence result with a non-None value wins.
  0 is a real value; only None falls through to the next extractor.
- Corporate actions: the list of the highest-precedence result that reports
  a list at all (an empty list counts and suppresses lower ones). If none
  does, the merged list is empty.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from floattracker.services.extraction.types import (
    SCALAR_FIELDS,
    CorporateActionEntry,
    ExtractionRecord,
    ExtractorResult,
)


def merge_extractions(results: Iterable[ExtractorResult]) -> ExtractionRecord:
    ranked = sorted(
        (r for r in results if r.record is not None),
        key=lambda r: r.precedence,
        reverse=True,
    )

    merged = ExtractionRecord(corporate_actions=[])
    for field_name in SCALAR_FIELDS:
        for result in ranked:
            value = getattr(result.record, field_name)
            if value is not None:
                setattr(merged, field_name, value)
                break

    actions: Optional[List[CorporateActionEntry]] = None
    for result in ranked:
        if result.record.corporate_actions is not None:
            actions = list(result.record.corporate_actions)
            break
    merged.corporate_actions = actions or []

    return merged
