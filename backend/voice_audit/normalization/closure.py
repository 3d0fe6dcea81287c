from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Any, Mapping

from voice_audit.catalogue import Catalogue, QuestionKind, QuestionSchema
from voice_audit.normalization.policy import (
    MATURITY_SIGNAL_PATTERNS,
    maturity_patterns,
    multi_select_patterns,
)
from voice_audit.normalization.text import as_text, count_hits, normalize_text, tokens

SESSION_ID_KEY = "session_id"
SOURCE_KEY = "source"
SUBMITTED_AT_KEY = "'Date soumission'"
RESPONDENT_NAME_KEY = "'Nom soumission'"
EXECUTION_MODE_KEY = "executionMode"

MODE_NORMALIZED = "production_normalized"
MODE_FALLBACK = "deterministic_fallback"

AFFIRMATIVE = frozenset({
    "true", "oui", "ok", "okay", "accord", "d accord", "yes", "j accepte", "accepte",
    "bien sur", "absolument", "tout a fait", "volontiers",
})

_INDEX_RE = re.compile(r"^\s*(?:option\s*|n\s*)?(\d{1,2})\s*[.)]?\s*$", re.IGNORECASE)
_SPLIT_RE = re.compile(r"[,;|\n]+")
_CONJUNCTION_RE = re.compile(r"\s+(?:et|and|puis)\s+", re.IGNORECASE)
_LEADING_WORDS_RE = re.compile(r"^\s*(?:(?:les|le|la|option|num[eé]ro)\b\s*|l['’]\s*)+", re.IGNORECASE)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return any(_present(item) for item in value)
    return True


def match_option(question: QuestionSchema, value: Any) -> int | None:
    """Exact label, 1-based index shorthand, then normalized exact label."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value - 1 if 1 <= value <= len(question.options) else None

    text = str(value).strip()
    if not text:
        return None
    if text in question.options:
        return question.options.index(text)

    index_match = _INDEX_RE.match(text)
    if index_match:
        position = int(index_match.group(1))
        if 1 <= position <= len(question.options):
            return position - 1

    normalized = normalize_text(text)
    for idx, option in enumerate(question.options):
        if normalize_text(option) == normalized:
            return idx
    return None


def _keyword_scores(patterns, text: str) -> list[tuple[int, int]]:
    """(hit count, matched length) per bucket.

    A hit lying inside a longer hit is not counted, so "centralise" does not
    score when "commence a centraliser" already covers it.
    """
    normalized = normalize_text(text)
    spans = []
    if normalized:
        for bucket, bucket_patterns in enumerate(patterns):
            for pattern in bucket_patterns:
                match = pattern.search(normalized)
                if match:
                    spans.append((bucket, match.start(), match.end()))

    scores = [(0, 0)] * len(patterns)
    for bucket, start, end in spans:
        nested = any(
            other_start <= start and end <= other_end and other_end - other_start > end - start
            for _, other_start, other_end in spans
        )
        if nested:
            continue
        count, length = scores[bucket]
        scores[bucket] = (count + 1, length + end - start)
    return scores


def _best_bucket(scores: list[tuple[int, int]], start: int = 0) -> int | None:
    best = None
    for idx in range(start, len(scores)):
        if scores[idx][0] <= 0:
            continue
        # ties go to the lower maturity bucket; the guard enforces the floor
        if best is None or scores[idx] > scores[best]:
            best = idx
    return best


def nearest_option(question: QuestionSchema, text: str) -> int:
    wanted = set(tokens(text))
    normalized = normalize_text(text)
    ranked = []
    for idx, option in enumerate(question.options):
        option_tokens = set(tokens(option))
        overlap = len(wanted & option_tokens) / len(option_tokens) if option_tokens else 0.0
        ratio = SequenceMatcher(None, normalized, normalize_text(option)).ratio()
        ranked.append((overlap, ratio, -idx))
    return -max(ranked)[2]


def has_maturity_signal(text: str) -> bool:
    return count_hits(text, MATURITY_SIGNAL_PATTERNS) > 0


def _escape_text(question: QuestionSchema, raw: Mapping, candidate: Mapping, fallback: str) -> str:
    if question.other_key:
        for source in (raw, candidate):
            text = as_text(source.get(question.other_key))
            if text:
                return text
    if fallback and fallback != question.other_label:
        return fallback
    return ""


def _cascade(question: QuestionSchema, text: str) -> int:
    """Keyword buckets, then the escape option, then nearest match."""
    patterns = maturity_patterns(question.id) if not question.has_escape else None
    if patterns:
        best = _best_bucket(_keyword_scores(patterns, text))
        if best is not None and best < len(question.options):
            return best
    if question.has_escape:
        return question.options.index(question.other_label)
    return nearest_option(question, text)


def resolve_select(question: QuestionSchema, raw: Mapping, candidate: Mapping) -> dict[str, Any]:
    raw_value = raw.get(question.key)
    candidate_value = candidate.get(question.key)
    raw_text = as_text(raw_value)

    index = match_option(question, raw_value)
    if index is None:
        index = match_option(question, candidate_value)
    if index is None and raw_text:
        index = _cascade(question, raw_text)
    if index is None and _present(candidate_value):
        index = _cascade(question, as_text(candidate_value))
    if index is None:
        index = 0

    if (
        index == 0
        and raw_text
        and maturity_patterns(question.id)
        and not question.has_escape
        and raw_text not in question.options
        and has_maturity_signal(raw_text)
    ):
        scores = _keyword_scores(maturity_patterns(question.id), raw_text)
        bumped = _best_bucket(scores, start=1)
        index = bumped if bumped is not None else min(1, len(question.options) - 1)

    resolved = {question.key: question.options[index]}
    if question.other_key:
        is_escape = question.options[index] == question.other_label
        fallback = raw_text or as_text(candidate_value)
        resolved[question.other_key] = _escape_text(question, raw, candidate, fallback) if is_escape else ""
    return resolved


def _match_item(question: QuestionSchema, item: Any) -> int | None:
    index = match_option(question, item)
    if index is None and isinstance(item, str):
        stripped = _LEADING_WORDS_RE.sub("", item)
        if stripped and stripped != item:
            index = match_option(question, stripped)
    return index


def _contained_option(question: QuestionSchema, item: Any) -> int | None:
    normalized = normalize_text(item)
    if not normalized:
        return None
    for idx, option in enumerate(question.options):
        option_normalized = normalize_text(option)
        if normalized in option_normalized or option_normalized in normalized:
            return idx
    return None


def _item_indexes(question: QuestionSchema, item: Any) -> list[int]:
    index = _match_item(question, item)
    if index is not None:
        return [index]
    if isinstance(item, str):
        # spoken lists: "le 2 et le 4"; only taken when every part resolves
        parts = _CONJUNCTION_RE.split(item)
        if len(parts) > 1:
            indexes = [_match_item(question, part) for part in parts]
            if all(idx is not None for idx in indexes):
                return indexes
    index = _contained_option(question, item)
    return [index] if index is not None else []


def _parse_multi(question: QuestionSchema, value: Any) -> list[int]:
    if not _present(value):
        return []
    if isinstance(value, (list, tuple)):
        items = [item for item in value if _present(item)]
    else:
        text = str(value)
        whole = match_option(question, text)
        if whole is not None:
            return [whole]
        items = _SPLIT_RE.split(text)

    found: list[int] = []
    for item in items:
        for index in _item_indexes(question, item):
            if index not in found:
                found.append(index)
    return found


def resolve_multi_select(question: QuestionSchema, raw: Mapping, candidate: Mapping) -> dict[str, Any]:
    limit = question.max_items or len(question.options)
    raw_value = raw.get(question.key)
    candidate_value = candidate.get(question.key)

    indexes = _parse_multi(question, raw_value) or _parse_multi(question, candidate_value)
    indexes = indexes[:limit]

    unresolved_text = as_text(raw_value) if not indexes else ""
    free_text = _escape_text(question, raw, candidate, unresolved_text)

    if not indexes and free_text:
        patterns = multi_select_patterns(question.id)
        if patterns:
            scored = [
                (count_hits(free_text, patterns[idx]), idx)
                for idx in sorted(patterns)
                if idx < len(question.options)
            ]
            ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: (-item[0], item[1]))
            indexes = sorted(idx for _, idx in ranked[:limit])

    if not indexes and free_text and question.has_escape:
        indexes = [question.options.index(question.other_label)]

    labels = [question.options[idx] for idx in indexes]
    resolved: dict[str, Any] = {question.key: labels}
    if question.other_key:
        resolved[question.other_key] = free_text if question.other_label in labels else ""
    return resolved


def parse_boolean(value: Any) -> bool | None:
    """True/False for a recognizable answer, None when there is nothing to read."""
    if isinstance(value, bool):
        return value
    if not _present(value):
        return None
    normalized = normalize_text(as_text(value))
    if normalized in AFFIRMATIVE:
        return True
    return any(normalized.startswith(token + " ") for token in AFFIRMATIVE)


def resolve_bool(question: QuestionSchema, raw: Mapping, candidate: Mapping) -> dict[str, Any]:
    value = parse_boolean(raw.get(question.key))
    if value is None:
        value = parse_boolean(candidate.get(question.key))
    return {question.key: bool(value)}


def resolve_text(question: QuestionSchema, raw: Mapping, candidate: Mapping) -> dict[str, Any]:
    text = as_text(raw.get(question.key)) or as_text(candidate.get(question.key))
    return {question.key: text}


_RESOLVERS = {
    QuestionKind.SELECT: resolve_select,
    QuestionKind.MULTI_SELECT: resolve_multi_select,
    QuestionKind.BOOL: resolve_bool,
    QuestionKind.STRING: resolve_text,
}


def name_from_email(email: str) -> str:
    local = str(email or "").strip().split("@", 1)[0]
    parts = [part for part in re.split(r"[._\-+]+", local) if part and not part.isdigit()]
    return " ".join(part.capitalize() for part in parts)


def close_payload(
    catalogue: Catalogue,
    raw_answers: Mapping[str, Any] | None,
    candidate: Mapping[str, Any] | None,
    session_id: str,
    submitted_at: str,
) -> dict[str, Any]:
    """Build the guaranteed payload: one valid value per record key, then metadata.

    Pure and deterministic: the same inputs always give the same dict, in the
    same key order. The candidate is advisory; it is only consulted where the
    raw answer does not resolve literally.
    """
    raw = dict(raw_answers or {})
    usable_candidate = dict(candidate) if isinstance(candidate, Mapping) and candidate else {}

    payload: dict[str, Any] = {}
    for question in catalogue:
        payload.update(_RESOLVERS[question.kind](question, raw, usable_candidate))

    name = as_text(usable_candidate.get(RESPONDENT_NAME_KEY)) or as_text(raw.get(RESPONDENT_NAME_KEY))
    if not name and catalogue.email_key:
        name = name_from_email(payload.get(catalogue.email_key, ""))

    payload[SESSION_ID_KEY] = str(session_id or "")
    payload[SOURCE_KEY] = catalogue.source_tag
    payload[SUBMITTED_AT_KEY] = str(submitted_at or "")
    payload[RESPONDENT_NAME_KEY] = name
    payload[EXECUTION_MODE_KEY] = MODE_NORMALIZED if usable_candidate else MODE_FALLBACK
    return payload
