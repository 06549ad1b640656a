"""Push and pull between the local snapshot and the store gateway.

Both directions are full replaces: push overwrites the store with the local
snapshot, pull overwrites the local snapshot (and cache) with the store.
"""
from __future__ import annotations
import logging
from typing import Optional, Tuple

from concept_vault.application.outcome import (
    SYNC_FROM,
    SYNC_TO,
    BusyFlags,
    OperationInProgress,
    Outcome,
    busy_outcome,
)
from concept_vault.domain.common.errors import (
    NotFoundError,
    StoreError,
    TransportFailureError,
    ValidationFailedError,
)
from concept_vault.domain.concept.models import ConceptSnapshot
from concept_vault.persistence.interfaces.concept_store import ConceptStore
from concept_vault.persistence.local_cache import LocalCache

logger = logging.getLogger(__name__)

NETWORK_MESSAGE = "Network error: Please check your internet connection and try again."
DATABASE_MESSAGE = "Database connection failed. Please check your database configuration."
INVALID_DATA_MESSAGE = "One or more concepts contain invalid data that doesn't match the required format."
NOT_FOUND_MESSAGE = "The concept no longer exists. Pull from the database to refresh."
CACHE_MESSAGE = "Could not write local storage. Please check the cache location and its permissions."


def classify_failure(exc: StoreError, fallback: str) -> str:
    """Turn a store failure into a message safe to show the user."""
    if isinstance(exc, TransportFailureError):
        return DATABASE_MESSAGE if exc.origin == "database" else NETWORK_MESSAGE
    if isinstance(exc, ValidationFailedError):
        return INVALID_DATA_MESSAGE
    if isinstance(exc, NotFoundError):
        return NOT_FOUND_MESSAGE
    return fallback


class SyncController:

    def __init__(self, store: ConceptStore, cache: LocalCache, busy: Optional[BusyFlags] = None):
        self._store = store
        self._cache = cache
        self._busy = busy or BusyFlags()

    def push(self, snapshot: ConceptSnapshot) -> Outcome:
        """Replace the store contents with ``snapshot``. The snapshot is never modified."""
        if snapshot.is_empty:
            return Outcome.error(
                "Nothing to sync",
                "You don't have any concepts to sync. Add some concepts first.",
            )
        try:
            with self._busy.hold(SYNC_TO):
                count = self._store.replace_all(snapshot)
        except OperationInProgress:
            return busy_outcome(SYNC_TO)
        except StoreError as e:
            logger.exception("Push to store failed")
            return Outcome.error(
                "Sync failed",
                classify_failure(e, "Failed to sync with database. Please try again."),
            )
        return Outcome.success(
            "Sync successful",
            f"Successfully synced {count} concepts to database.",
            count,
        )

    def pull(self, snapshot: ConceptSnapshot) -> Tuple[Outcome, ConceptSnapshot]:
        """Fetch the store contents; a non-empty result replaces ``snapshot`` and the cache."""
        try:
            with self._busy.hold(SYNC_FROM):
                remote = ConceptSnapshot.of(self._store.fetch_all())
                if remote.is_empty:
                    return (
                        Outcome.info("No data found", "No concepts found in the database to sync."),
                        snapshot,
                    )
                self._cache.save(remote)
        except OperationInProgress:
            return busy_outcome(SYNC_FROM), snapshot
        except StoreError as e:
            logger.exception("Pull from store failed")
            return (
                Outcome.error(
                    "Sync failed",
                    classify_failure(e, "Failed to sync from database. Please try again."),
                ),
                snapshot,
            )
        except OSError:
            logger.exception("Saving pulled concepts to %s failed", self._cache.path)
            return Outcome.error("Sync failed", CACHE_MESSAGE), snapshot
        return (
            Outcome.success(
                "Sync successful",
                f"Successfully synced {len(remote)} concepts from database to local storage.",
                len(remote),
            ),
            remote,
        )
