"""Application service: orchestrates validate → domain op → persist for the API."""
from __future__ import annotations
from typing import Any, List, Mapping

from concept_vault.domain.common.errors import ErrorKind
from concept_vault.domain.common.result import Result
from concept_vault.domain.concept.models import Concept
from concept_vault.domain.concept.rules import missing_required_field
from concept_vault.domain.concept.service import ConceptDomainService
from concept_vault.persistence.interfaces.concept_store import ConceptStore


class ConceptAppService:
    """Store failures (not found, transport) propagate as ``StoreError``; input problems come back as ``Result.fail``."""

    def __init__(self, store: ConceptStore):
        self._store = store
        self._domain = ConceptDomainService()

    # ------------------------------------------------------------------
    # CREATE
    # ------------------------------------------------------------------
    def create_concept(self, data: Mapping[str, Any]) -> Result[Concept]:
        draft = self._domain.prepare_draft(data)
        if not draft.is_success:
            return draft.carry()
        return Result.ok(self._store.create(draft.value))

    # ------------------------------------------------------------------
    # READ
    # ------------------------------------------------------------------
    def get_concept(self, concept_id: str) -> Concept:
        return self._store.get_by_id(concept_id)

    def list_concepts(self) -> List[Concept]:
        return self._store.fetch_all()

    # ------------------------------------------------------------------
    # UPDATE
    # ------------------------------------------------------------------
    def update_concept(self, concept_id: str, patch: Mapping[str, Any]) -> Concept:
        return self._store.update(concept_id, patch)

    # ------------------------------------------------------------------
    # DELETE
    # ------------------------------------------------------------------
    def delete_concept(self, concept_id: str) -> Concept:
        return self._store.delete_by_id(concept_id)

    # ------------------------------------------------------------------
    # BULK SYNC
    # ------------------------------------------------------------------
    def replace_all(self, docs: Any) -> Result[int]:
        """Full replace from raw documents; refuses the whole batch on the first bad record."""
        if not isinstance(docs, list):
            return Result.fail(
                "Expected an array of concepts but received different data type", ErrorKind.NOT_A_LIST
            )
        for index, doc in enumerate(docs):
            missing = missing_required_field(doc)
            if missing:
                return Result.fail(f"Concept at index {index} is missing required field: {missing}")
        concepts = [_from_sync_document(d) for d in docs]
        return Result.ok(self._store.replace_all(concepts))


def _from_sync_document(doc: Mapping[str, Any]) -> Concept:
    """Pushed documents keep their id and timestamps; everything else goes through the factory."""
    built = Concept.build(doc)
    decoded = Concept.from_document(doc)
    return built.with_changes(
        id=decoded.id,
        created_at=decoded.created_at or built.created_at,
        updated_at=decoded.updated_at or built.updated_at,
    )
