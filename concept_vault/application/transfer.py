"""File import (validate, preview, commit) and export of the local snapshot."""
from __future__ import annotations
import json
import logging
import os
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from concept_vault.application.outcome import (
    EXPORT,
    IMPORT,
    BusyFlags,
    OperationInProgress,
    Outcome,
    busy_outcome,
)
from concept_vault.core.config import IMPORT_EXTENSION, MAX_IMPORT_BYTES
from concept_vault.domain.common.errors import ErrorKind
from concept_vault.domain.common.result import Result
from concept_vault.domain.concept.models import Concept, ConceptSnapshot
from concept_vault.domain.concept.rules import ValidationResult, validate_payload
from concept_vault.domain.concept.service import merge_concepts
from concept_vault.persistence.local_cache import LocalCache

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Export
# ------------------------------------------------------------------
def export_concepts(snapshot: ConceptSnapshot) -> str:
    return json.dumps(snapshot.to_documents(), indent=2, ensure_ascii=False)


def parse_concepts(text: str) -> List[Concept]:
    """Decode an export artifact back into concepts (ids and timestamps kept)."""
    return [Concept.from_document(d) for d in json.loads(text)]


def export_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"software-concepts-{day.isoformat()}.json"


def write_export(
    snapshot: ConceptSnapshot,
    directory: str,
    day: Optional[date] = None,
    busy: Optional[BusyFlags] = None,
) -> Outcome:
    if snapshot.is_empty:
        return Outcome.error(
            "Nothing to export",
            "You don't have any concepts to export. Add some concepts first.",
        )
    busy = busy or BusyFlags()
    path = os.path.join(directory, export_filename(day))
    try:
        with busy.hold(EXPORT):
            os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(export_concepts(snapshot))
    except OperationInProgress:
        return busy_outcome(EXPORT)
    except OSError:
        logger.exception("Export to %s failed", path)
        return Outcome.error(
            "Export failed",
            "Failed to export concepts. This might be due to insufficient storage space or file permissions.",
        )
    return Outcome.success(
        "Export successful",
        f"Successfully exported {len(snapshot)} concepts to {path}.",
        len(snapshot),
    )


# ------------------------------------------------------------------
# Import
# ------------------------------------------------------------------
def read_import_file(path: str, max_bytes: Optional[int] = None) -> Result[str]:
    """Check extension and size, then read. Nothing is parsed here."""
    max_bytes = max_bytes if max_bytes is not None else MAX_IMPORT_BYTES
    if not path.lower().endswith(IMPORT_EXTENSION):
        return Result.fail("Please select a JSON file (.json extension required).", ErrorKind.MALFORMED_INPUT)
    try:
        size = os.path.getsize(path)
    except OSError as e:
        return Result.fail(f"Cannot read file: {e.strerror or e}", ErrorKind.MALFORMED_INPUT)
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        return Result.fail(
            f"File size must be less than {limit_mb:g}MB. Please choose a smaller file.",
            ErrorKind.MALFORMED_INPUT,
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            return Result.ok(f.read())
    except (OSError, UnicodeDecodeError) as e:
        return Result.fail(f"Cannot read file: {e}", ErrorKind.MALFORMED_INPUT)


class ImportSession:
    """Stages a validated import until it is committed or discarded."""

    def __init__(self, cache: LocalCache, busy: Optional[BusyFlags] = None):
        self._cache = cache
        self._busy = busy or BusyFlags()
        self.staged: Optional[ValidationResult] = None

    def stage(self, content: Any, now: Optional[datetime] = None) -> ValidationResult:
        self.staged = validate_payload(content, now=now)
        return self.staged

    def discard(self) -> None:
        self.staged = None

    def commit(self, snapshot: ConceptSnapshot) -> Tuple[Outcome, ConceptSnapshot]:
        """Merge the staged concepts into ``snapshot``.

        Returns ``(outcome, snapshot)``; on refusal the input snapshot is
        returned unchanged and the staged result is kept.
        """
        if self.staged is None:
            return Outcome.error("Cannot import", "Choose a file to import first."), snapshot
        staged = self.staged.to_result()
        if not staged.is_success:
            return (
                Outcome.error("Cannot import", "Please fix all validation errors before importing."),
                snapshot,
            )

        try:
            with self._busy.hold(IMPORT):
                merged = merge_concepts(snapshot, staged.value)
                self._cache.save(merged.snapshot)
        except OperationInProgress:
            return busy_outcome(IMPORT), snapshot
        except OSError:
            logger.exception("Saving imported concepts failed")
            return (
                Outcome.error("Import failed", "Failed to import concepts. Please try again."),
                snapshot,
            )

        self.staged = None
        detail = f"Successfully imported {merged.added} new concepts."
        if merged.skipped:
            detail += f" {merged.skipped} duplicates were skipped."
        return Outcome.success("Import successful", detail, merged.added), merged.snapshot
