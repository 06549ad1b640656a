"""Domain service: pure business logic for drafting, merging and searching concepts."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Any

from concept_vault.domain.common.result import Result
from concept_vault.domain.concept.models import Concept, ConceptSnapshot, TEXT_FIELDS, utc_now
from concept_vault.domain.concept.rules import validate_concept_content

SEARCHABLE_FIELDS = (
    "title",
    "keyword",
    "topic",
    "definition",
    "detailed_explanation",
    "when_to_use",
    "why_need",
    "differences",
)


@dataclass(frozen=True)
class MergeResult:
    snapshot: ConceptSnapshot
    added: int
    skipped: int


@dataclass(frozen=True)
class ConceptStats:
    total: int
    topics: int


class ConceptDomainService:
    """
    Pure domain operations, no I/O.
    The application layer calls these and then persists via the store gateway.
    """

    def prepare_draft(self, data: Mapping[str, Any], now: Optional[datetime] = None) -> Result[Concept]:
        """Validate form data and build a draft (no id) from it."""
        validation = validate_concept_content(dict(data))
        if not validation.is_success:
            return validation.carry()
        return Result.ok(Concept.build(data, now=now))

    def apply_patch(
        self,
        concept: Concept,
        patch: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Result[Concept]:
        """Apply wire-named changes to a persisted concept and bump ``updated_at``."""
        merged = concept.to_document()
        merged.update({k: v for k, v in patch.items() if k in TEXT_FIELDS or k == "topicID"})
        validation = validate_concept_content(merged)
        if not validation.is_success:
            return validation.carry()

        rebuilt = Concept.build(merged, now=now)
        return Result.ok(
            rebuilt.with_changes(
                id=concept.id,
                created_at=concept.created_at or rebuilt.created_at,
                updated_at=now or utc_now(),
            )
        )

    def stats(self, snapshot: ConceptSnapshot) -> ConceptStats:
        return ConceptStats(total=len(snapshot), topics=len(snapshot.topics()))


def merge_concepts(existing: ConceptSnapshot, incoming: Iterable[Concept]) -> MergeResult:
    """Additive import merge.

    Incoming concepts whose title (case-insensitive) already exists are
    skipped; the rest are appended after the existing records. Existing
    records are never overwritten.
    """
    existing_titles = existing.title_keys()
    incoming = list(incoming)
    fresh = [c for c in incoming if c.title_key not in existing_titles]
    return MergeResult(
        snapshot=existing.extend(fresh),
        added=len(fresh),
        skipped=len(incoming) - len(fresh),
    )


def search_concepts(concepts: Iterable[Concept], query: str) -> List[Concept]:
    """Case-insensitive substring match; a blank query matches everything."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(concepts)
    return [
        c for c in concepts
        if any(needle in getattr(c, name).lower() for name in SEARCHABLE_FIELDS)
    ]


def group_by_topic(concepts: Iterable[Concept]) -> Dict[str, List[Concept]]:
    grouped: Dict[str, List[Concept]] = {}
    for concept in concepts:
        grouped.setdefault(concept.topic, []).append(concept)
    return grouped
