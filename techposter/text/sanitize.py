"""Text helpers shared by ingestion, extraction and rendering.

- Normalize typographic punctuation and whitespace so posters render with
  plain ASCII-ish glyphs.
- Split body text into sentence-like units for bullet construction.
- Compute normalized title keys used for near-duplicate detection.
"""

from __future__ import annotations

import html
import re
from typing import List, Optional


_REPLACEMENTS = (
    ("\u2013", "-"),
    ("\u2014", "-"),
    ("\u2212", "-"),
    ("\u2018", "'"),
    ("\u2019", "'"),
    ("\u201c", '"'),
    ("\u201d", '"'),
    ("\u2026", "..."),
    ("\u00a0", " "),
)

_WS_RE = re.compile(r"\s+")
_SENTENCE_RE = re.compile(r"[^.!?\r\n]+[.!?]?")
_TITLE_KEY_RE = re.compile(r"[^a-z0-9]+")
_TAG_RE = re.compile(r"<[^>]+>")


def sanitize(text: Optional[str]) -> str:
    if not text:
        return ""
    out = str(text)
    for needle, repl in _REPLACEMENTS:
        out = out.replace(needle, repl)
    return _WS_RE.sub(" ", out).strip()


def truncate(text: Optional[str], max_len: int = 140) -> str:
    clean = sanitize(text)
    if len(clean) <= max_len:
        return clean
    return clean[: max_len - 1].strip() + "\u2026"


def split_sentences(text: Optional[str]) -> List[str]:
    """Split on `.`, `!`, `?` and line breaks.

    A trailing fragment without terminal punctuation is kept as its own unit.
    """
    if not text:
        return []
    clean = sanitize(text)
    matches = _SENTENCE_RE.findall(clean)
    if not matches:
        return [clean] if clean else []
    return [m.strip() for m in matches if m.strip()]


def normalize_title_key(title: Optional[str]) -> str:
    """Lowercase, collapse punctuation runs to one space, trim."""
    if not title:
        return ""
    return _TITLE_KEY_RE.sub(" ", sanitize(title).lower()).strip()


def word_count(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(text.split())


def strip_markup(fragment: Optional[str]) -> str:
    """Plain text from an HTML fragment such as an RSS summary."""
    if not fragment:
        return ""
    return sanitize(html.unescape(_TAG_RE.sub(" ", str(fragment))))
