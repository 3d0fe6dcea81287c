from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable

_NON_WORD_RE = re.compile(r"[^a-z0-9]+")

_STOPWORDS = frozenset({
    "a", "au", "aux", "avec", "ce", "ces", "d", "dans", "de", "des", "du", "en", "est", "et",
    "il", "j", "je", "l", "la", "le", "les", "mais", "n", "ne", "nos", "notre", "nous", "on",
    "ou", "par", "pour", "qu", "que", "qui", "s", "sa", "se", "ses", "son", "sont", "sur",
    "un", "une", "vos", "votre", "vous", "y",
})


def normalize_text(value: Any) -> str:
    """Lowercase, fold ligatures and accents, turn punctuation into single spaces."""
    text = str(value if value is not None else "").lower()
    text = text.replace("œ", "oe").replace("æ", "ae")
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_WORD_RE.sub(" ", text).strip()


def tokens(value: Any) -> list[str]:
    return [token for token in normalize_text(value).split() if token not in _STOPWORDS]


def compile_keywords(keywords: Iterable[str]) -> list[re.Pattern]:
    """Keywords match at a word start, so "test" also hits "teste" and "tests"."""
    patterns = []
    for keyword in keywords:
        normalized = normalize_text(keyword)
        if normalized:
            patterns.append(re.compile(r"(?<![a-z0-9])" + re.escape(normalized)))
    return patterns


def count_hits(text: str, patterns: Iterable[re.Pattern]) -> int:
    normalized = normalize_text(text)
    if not normalized:
        return 0
    return sum(1 for pattern in patterns if pattern.search(normalized))


def as_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(as_text(item) for item in value if as_text(item))
    return str(value).strip()
