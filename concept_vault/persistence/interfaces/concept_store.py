"""Abstract store gateway for the Concept record set."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping

from concept_vault.domain.concept.models import Concept


class ConceptStore(ABC):
    """Persistent backing store.

    Implementations raise ``NotFoundError``, ``ValidationFailedError`` or
    ``TransportFailureError`` (all ``StoreError``) instead of returning
    sentinel values.
    """

    @abstractmethod
    def fetch_all(self) -> List[Concept]:
        """Return every concept, newest (by created_at) first."""
        ...

    @abstractmethod
    def get_by_id(self, concept_id: str) -> Concept:
        ...

    @abstractmethod
    def create(self, draft: Concept) -> Concept:
        """Persist a draft; the returned concept carries its id and timestamps."""
        ...

    @abstractmethod
    def update(self, concept_id: str, patch: Mapping[str, Any]) -> Concept:
        """Apply wire-named field changes and return the updated concept."""
        ...

    @abstractmethod
    def delete_by_id(self, concept_id: str) -> Concept:
        """Delete a concept and return it as it was."""
        ...

    @abstractmethod
    def replace_all(self, concepts: Iterable[Concept]) -> int:
        """Clear the store and insert ``concepts``; all-or-nothing. Returns the count."""
        ...
