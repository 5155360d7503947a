"""
normalizer.py — Raw filing document → plain text.

Script/style blocks are dropped entirely, remaining tags are stripped and
whitespace is collapsed to single spaces. Empty or missing input yields an
empty string; downstream stages treat that as "nothing to extract".
"""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_DROP_TAGS = ["script", "style", "noscript"]


def normalize_document(raw: Optional[str]) -> str:
    if not raw or not raw.strip():
        return ""

    soup = BeautifulSoup(raw, "lxml")
    for tag in soup(_DROP_TAGS):
        tag.decompose()

    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()
