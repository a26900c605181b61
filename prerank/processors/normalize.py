from __future__ import annotations

import html
import re
import unicodedata
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from bs4 import BeautifulSoup

from ..utils.logging import get_logger

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")

# Hyphen-like glyphs that all collapse to "-" before keyword matching
_DASHES = "\u2010\u2011\u2012\u2013\u2014\u2015\u2212\ufe58\ufe63\uff0d"

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u00A0"): " ",  # non-breaking space
}
_PUNCT_TRANSLATION.update({ord(ch): "-" for ch in _DASHES})

_DASH_TRANSLATION = {ord(ch): "-" for ch in _DASHES}

_logger = get_logger("prerank.processors.normalize")


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text("\n")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text for downstream processing.

    - Strip BOM
    - Replace curly quotes, dash variants and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters
    - Collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    text = _whitespace_re.sub(" ", text).strip()
    return text


def fold_dashes(text: str | None) -> str:
    """Map every dash glyph to ASCII hyphen and case-fold."""
    if not text:
        return ""
    return text.translate(_DASH_TRANSLATION).casefold()


def normalize_title_key(title: str | None) -> str:
    """Comparison key for fuzzy title matching.

    Lower-cased NFKC text with all whitespace, punctuation and symbols
    removed, so "GPT-5 released!" and "gpt5 released" share a key and site
    suffixes such as "| The Verge" reduce to plain words.
    """
    if not title:
        return ""
    text = unicodedata.normalize("NFKC", title).lower()
    return "".join(
        ch for ch in text if not ch.isspace() and unicodedata.category(ch)[0] not in "PS"
    )


def truncate_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of adapter timestamps to aware UTC datetimes.

    Accepts datetimes, epoch seconds, ISO 8601 strings (with or without a
    trailing ``Z``) and RFC 822 strings as found in feeds. Returns ``None``
    for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        raw = value.strip()
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = parsedate_to_datetime(raw)
            except (TypeError, ValueError, IndexError):
                _logger.debug("Unparseable timestamp: %r", value)
                return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
