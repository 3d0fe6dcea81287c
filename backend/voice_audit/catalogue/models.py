from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable


class QuestionKind(str, Enum):
    SELECT = "select"
    MULTI_SELECT = "array"
    STRING = "string"
    BOOL = "bool"


@dataclass(frozen=True)
class QuestionSchema:
    id: str
    label: str
    kind: QuestionKind
    key: str
    options: tuple[str, ...] = ()
    other_label: str | None = None
    other_key: str | None = None
    max_items: int | None = None
    description: str | None = None

    @property
    def has_escape(self) -> bool:
        return bool(self.other_label and self.other_key)

    def context(self) -> dict:
        """Compact description handed to the semantic mapper."""
        return {
            "property": self.key,
            "label": self.label,
            "options": list(self.options),
            "type": self.kind.value,
            "autreKey": self.other_key,
        }


@dataclass(frozen=True)
class Stage:
    label: str
    max_index: int


@dataclass(frozen=True)
class Catalogue:
    questions: tuple[QuestionSchema, ...]
    source_tag: str
    stages: tuple[Stage, ...] = field(default_factory=tuple)
    email_key: str | None = None

    def __post_init__(self):
        validate_questions(self.questions)

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def __getitem__(self, index: int) -> QuestionSchema:
        return self.questions[index]

    def index_of(self, question_id: str) -> int:
        wanted = str(question_id or "").strip().lower()
        for idx, question in enumerate(self.questions):
            if question.id.lower() == wanted:
                return idx
        return -1

    def by_key(self, key: str) -> QuestionSchema | None:
        for question in self.questions:
            if question.key == key:
                return question
        return None

    def stage_for(self, step: int, finished: bool = False) -> tuple[int, str]:
        if not self.stages:
            return 1, ""
        if finished:
            return len(self.stages), self.stages[-1].label
        for idx, stage in enumerate(self.stages):
            if step <= stage.max_index:
                return idx + 1, stage.label
        return len(self.stages), self.stages[-1].label


def validate_questions(questions: Iterable[QuestionSchema]) -> None:
    seen_ids: set[str] = set()
    seen_keys: set[str] = set()
    for question in questions:
        if question.id in seen_ids:
            raise ValueError(f"duplicate question id: {question.id}")
        seen_ids.add(question.id)

        for key in (question.key, question.other_key):
            if not key:
                continue
            if key in seen_keys:
                raise ValueError(f"duplicate record key: {key}")
            seen_keys.add(key)

        if len(set(question.options)) != len(question.options):
            raise ValueError(f"duplicate option labels in {question.id}")
        if question.kind in (QuestionKind.SELECT, QuestionKind.MULTI_SELECT) and not question.options:
            raise ValueError(f"{question.id} needs at least one option")
        if question.other_label and question.other_label not in question.options:
            raise ValueError(f"{question.id}: escape label {question.other_label!r} is not an option")
        if question.max_items is not None and question.max_items < 1:
            raise ValueError(f"{question.id}: max_items must be positive")


def question_from_dict(raw: dict) -> QuestionSchema:
    max_items = raw.get("maxItems", raw.get("max_items"))
    return QuestionSchema(
        id=str(raw["id"]),
        label=str(raw.get("label") or ""),
        kind=QuestionKind(str(raw.get("type") or raw.get("kind") or "string")),
        key=str(raw.get("notionKey") or raw.get("key") or raw["id"]),
        options=tuple(str(option) for option in (raw.get("options") or [])),
        other_label=raw.get("triggerAutre") or raw.get("other_label"),
        other_key=raw.get("autreKey") or raw.get("other_key"),
        max_items=int(max_items) if max_items is not None else None,
        description=raw.get("description"),
    )


def load_catalogue(path: str | Path) -> Catalogue:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    questions = tuple(question_from_dict(item) for item in data.get("questions") or [])
    stages = tuple(
        Stage(label=str(item.get("label") or ""), max_index=int(item.get("maxIndex", item.get("max_index", 0))))
        for item in data.get("stages") or []
    )
    return Catalogue(
        questions=questions,
        source_tag=str(data.get("source") or data.get("source_tag") or ""),
        stages=stages,
        email_key=data.get("emailKey") or data.get("email_key"),
    )
