"""JSON file snapshot of the full record set, read before any network round-trip."""
from __future__ import annotations
import json
import logging
import os
from typing import Optional

from concept_vault.core.config import CACHE_PATH
from concept_vault.domain.concept.models import ConceptSnapshot

logger = logging.getLogger(__name__)


class LocalCache:
    """Single-key cache: the whole snapshot is written and read as one value."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or CACHE_PATH

    def load(self) -> Optional[ConceptSnapshot]:
        """Return the cached snapshot, or None when nothing usable is cached."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                docs = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, e)
            return None
        if not isinstance(docs, list):
            logger.warning("Ignoring cache %s: expected a list of concepts", self.path)
            return None
        return ConceptSnapshot.from_documents(d for d in docs if isinstance(d, dict))

    def save(self, snapshot: ConceptSnapshot) -> None:
        """Replace the cached snapshot wholesale."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        temp_path = self.path + ".tmp"
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_documents(), f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.path)
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)
