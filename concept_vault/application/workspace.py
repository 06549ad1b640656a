"""Client-side workspace: owns the current snapshot and routes every change through the cache."""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from concept_vault.application.outcome import BusyFlags, Outcome
from concept_vault.application.sync_controller import CACHE_MESSAGE, SyncController, classify_failure
from concept_vault.application.transfer import ImportSession, read_import_file, write_export
from concept_vault.domain.common.errors import StoreError
from concept_vault.domain.common.result import Result
from concept_vault.domain.concept.models import Concept, ConceptSnapshot
from concept_vault.domain.concept.rules import ValidationResult
from concept_vault.domain.concept.service import (
    ConceptDomainService,
    ConceptStats,
    group_by_topic,
    search_concepts,
)
from concept_vault.persistence.interfaces.concept_store import ConceptStore
from concept_vault.persistence.local_cache import LocalCache

logger = logging.getLogger(__name__)


class ConceptWorkspace:
    """
    The in-memory record set a user works against.

    ``snapshot`` is replaced wholesale after every completed operation and
    the same value is written to the local cache, so readers never observe a
    partially applied change.
    """

    def __init__(self, store: ConceptStore, cache: LocalCache):
        self.store = store
        self.cache = cache
        self.snapshot = ConceptSnapshot()
        self._busy = BusyFlags()
        self._domain = ConceptDomainService()
        self.sync = SyncController(store, cache, self._busy)
        self.imports = ImportSession(cache, self._busy)

    def _replace(self, snapshot: ConceptSnapshot) -> Optional[Outcome]:
        """Swap in ``snapshot`` and persist it; returns an error outcome when the cache write fails.

        The in-memory snapshot is swapped even when the write fails; it
        mirrors what the store already holds.
        """
        self.snapshot = snapshot
        try:
            self.cache.save(snapshot)
        except OSError:
            logger.exception("Writing local cache %s failed", self.cache.path)
            return Outcome.error("Local save failed", CACHE_MESSAGE)
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self) -> Outcome:
        """Cache first; the store is only asked when nothing is cached."""
        cached = self.cache.load()
        if cached is not None:
            self.snapshot = cached
            return Outcome.info("Loaded", f"{len(cached)} concepts loaded from local storage.")
        try:
            remote = ConceptSnapshot.of(self.store.fetch_all())
        except StoreError as e:
            logger.exception("Loading concepts failed")
            return Outcome.error(
                "Loading failed",
                classify_failure(e, "Failed to load concepts. Please try again."),
            )
        return self._replace(remote) or Outcome.success(
            "Loaded",
            f"{len(remote)} concepts loaded from database.",
            len(remote),
        )

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create(self, fields: Mapping[str, Any]) -> Outcome:
        draft = self._domain.prepare_draft(fields)
        if not draft.is_success:
            return Outcome.error("Invalid concept", draft.error)
        try:
            created = self.store.create(draft.value)
        except StoreError as e:
            logger.exception("Creating concept failed")
            return Outcome.error("Save failed", classify_failure(e, "Failed to save concept."))
        return self._replace(self.snapshot.prepend(created)) or Outcome.success(
            "Concept saved",
            f'Added "{created.title}".',
            1,
        )

    def update(self, concept_id: str, fields: Mapping[str, Any]) -> Outcome:
        try:
            updated = self.store.update(concept_id, fields)
        except StoreError as e:
            logger.exception("Updating concept %s failed", concept_id)
            return Outcome.error("Save failed", classify_failure(e, "Failed to save concept."))
        return self._replace(self.snapshot.replace(updated)) or Outcome.success(
            "Concept saved",
            f'Updated "{updated.title}".',
            1,
        )

    def delete(self, concept_id: str) -> Outcome:
        try:
            deleted = self.store.delete_by_id(concept_id)
        except StoreError as e:
            logger.exception("Deleting concept %s failed", concept_id)
            return Outcome.error("Delete failed", classify_failure(e, "Failed to delete concept."))
        return self._replace(self.snapshot.remove(concept_id)) or Outcome.success(
            "Concept deleted",
            f'Deleted "{deleted.title}".',
            1,
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def search(self, query: str) -> List[Concept]:
        return search_concepts(self.snapshot, query)

    def search_by_topic(self, query: str) -> Dict[str, List[Concept]]:
        return group_by_topic(self.search(query))

    def stats(self) -> ConceptStats:
        return self._domain.stats(self.snapshot)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------
    def push(self) -> Outcome:
        return self.sync.push(self.snapshot)

    def pull(self) -> Outcome:
        outcome, self.snapshot = self.sync.pull(self.snapshot)
        return outcome

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------
    def stage_import_file(self, path: str) -> Result[ValidationResult]:
        """Read and validate ``path``; fails when the file itself is refused."""
        content = read_import_file(path)
        if not content.is_success:
            logger.warning("Import file refused: %s", content.error)
            self.imports.discard()
            return content.carry()
        return Result.ok(self.imports.stage(content.value))

    def stage_import(self, content: Any) -> ValidationResult:
        return self.imports.stage(content)

    def discard_import(self) -> None:
        self.imports.discard()

    def commit_import(self) -> Outcome:
        outcome, self.snapshot = self.imports.commit(self.snapshot)
        return outcome

    def export(self, directory: str, day: Optional[date] = None) -> Outcome:
        return write_export(self.snapshot, directory, day=day, busy=self._busy)
