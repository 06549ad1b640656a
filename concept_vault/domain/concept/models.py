"""Concept domain models: pure Python, no DB or HTTP dependencies."""
from __future__ import annotations
import dataclasses
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

# Wire (JSON document) name -> Python attribute, in document order.
TEXT_FIELDS: Dict[str, str] = {
    "topic": "topic",
    "title": "title",
    "definition": "definition",
    "detailedExplanation": "detailed_explanation",
    "whenToUse": "when_to_use",
    "whyNeed": "why_need",
    "codeExample": "code_example",
    "keyword": "keyword",
    "differences": "differences",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def title_key(title: str) -> str:
    """Case-insensitive dedup key for a title."""
    return title.strip().lower()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort decode of a timestamp; returns None when unparseable.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` included) and
    epoch milliseconds. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def _coerce_topic_id(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class Concept:
    title: str
    topic: str
    definition: str
    keyword: str
    topic_id: int = 0
    detailed_explanation: str = ""
    when_to_use: str = ""
    why_need: str = ""
    code_example: str = ""
    differences: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.id is None

    @property
    def title_key(self) -> str:
        return title_key(self.title)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(cls, fields: Mapping[str, Any], now: Optional[datetime] = None) -> "Concept":
        """Build a draft from wire-named fields.

        This is the one place the record defaults live: strings are trimmed,
        missing optional strings become ``""``, ``topicID`` defaults to 0 and
        missing or unparseable timestamps become ``now``. Any identifier in
        ``fields`` is dropped.
        """
        now = now or utc_now()
        values = {attr: _text(fields.get(wire)).strip() for wire, attr in TEXT_FIELDS.items()}
        return cls(
            topic_id=_coerce_topic_id(fields.get("topicID")),
            created_at=parse_timestamp(fields.get("createdAt")) or now,
            updated_at=parse_timestamp(fields.get("updatedAt")) or now,
            **values,
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Concept":
        """Decode a stored, cached or exported document as-is."""
        values = {attr: _text(doc.get(wire)) for wire, attr in TEXT_FIELDS.items()}
        raw_id = doc.get("_id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            topic_id=_coerce_topic_id(doc.get("topicID")),
            created_at=parse_timestamp(doc.get("createdAt")),
            updated_at=parse_timestamp(doc.get("updatedAt")),
            **values,
        )

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {}
        if self.id is not None:
            doc["_id"] = self.id
        doc["topicID"] = self.topic_id
        for wire, attr in TEXT_FIELDS.items():
            doc[wire] = getattr(self, attr)
        if self.created_at is not None:
            doc["createdAt"] = format_timestamp(self.created_at)
        if self.updated_at is not None:
            doc["updatedAt"] = format_timestamp(self.updated_at)
        return doc

    def with_changes(self, **changes: Any) -> "Concept":
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class ConceptSnapshot:
    """Immutable view of the full record set.

    Every mutation returns a new snapshot; callers swap the whole value.
    """

    concepts: Tuple[Concept, ...] = ()

    @classmethod
    def of(cls, concepts: Iterable[Concept]) -> "ConceptSnapshot":
        return cls(tuple(concepts))

    @classmethod
    def from_documents(cls, docs: Iterable[Mapping[str, Any]]) -> "ConceptSnapshot":
        return cls(tuple(Concept.from_document(d) for d in docs))

    def __len__(self) -> int:
        return len(self.concepts)

    def __iter__(self) -> Iterator[Concept]:
        return iter(self.concepts)

    @property
    def is_empty(self) -> bool:
        return not self.concepts

    def title_keys(self) -> set:
        return {c.title_key for c in self.concepts}

    def topics(self) -> set:
        return {c.topic for c in self.concepts}

    def prepend(self, concept: Concept) -> "ConceptSnapshot":
        return ConceptSnapshot((concept,) + self.concepts)

    def extend(self, concepts: Iterable[Concept]) -> "ConceptSnapshot":
        return ConceptSnapshot(self.concepts + tuple(concepts))

    def replace(self, concept: Concept) -> "ConceptSnapshot":
        return ConceptSnapshot(tuple(concept if c.id == concept.id else c for c in self.concepts))

    def remove(self, concept_id: str) -> "ConceptSnapshot":
        return ConceptSnapshot(tuple(c for c in self.concepts if c.id != concept_id))

    def to_documents(self) -> list:
        return [c.to_document() for c in self.concepts]
