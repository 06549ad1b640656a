"""SQLite implementation of ConceptStore."""
from __future__ import annotations
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import timezone
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from concept_vault.domain.common.errors import (
    NotFoundError,
    TransportFailureError,
    ValidationFailedError,
)
from concept_vault.domain.concept.models import Concept, parse_timestamp, utc_now
from concept_vault.domain.concept.rules import validate_concept_content
from concept_vault.domain.concept.service import ConceptDomainService
from concept_vault.persistence.db import get_connection
from concept_vault.persistence.interfaces.concept_store import ConceptStore

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id", "topic_id", "topic", "title", "definition",
    "detailed_explanation", "when_to_use", "why_need", "code_example",
    "keyword", "differences", "created_at", "updated_at",
)
_INSERT_SQL = (
    f"INSERT INTO concepts ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join(':' + c for c in _COLUMNS)})"
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _row_to_concept(row) -> Concept:
    return Concept(
        id=row["id"],
        topic_id=row["topic_id"],
        topic=row["topic"],
        title=row["title"],
        definition=row["definition"],
        detailed_explanation=row["detailed_explanation"],
        when_to_use=row["when_to_use"],
        why_need=row["why_need"],
        code_example=row["code_example"],
        keyword=row["keyword"],
        differences=row["differences"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def _concept_to_row(concept: Concept) -> dict:
    return {
        "id": concept.id,
        "topic_id": concept.topic_id,
        "topic": concept.topic,
        "title": concept.title,
        "definition": concept.definition,
        "detailed_explanation": concept.detailed_explanation,
        "when_to_use": concept.when_to_use,
        "why_need": concept.why_need,
        "code_example": concept.code_example,
        "keyword": concept.keyword,
        "differences": concept.differences,
        # Stored in UTC so that ORDER BY created_at sorts chronologically.
        "created_at": concept.created_at.astimezone(timezone.utc).isoformat(),
        "updated_at": concept.updated_at.astimezone(timezone.utc).isoformat(),
    }


def _stamped(concept: Concept, keep_id: bool) -> Concept:
    now = utc_now()
    return concept.with_changes(
        id=concept.id if keep_id and concept.id else _new_id(),
        created_at=concept.created_at or now,
        updated_at=concept.updated_at or now,
    )


def _check(concept: Concept, position: Optional[int] = None) -> None:
    validation = validate_concept_content(concept.to_document())
    if not validation.is_success:
        where = f"Concept at index {position}: " if position is not None else ""
        raise ValidationFailedError(where + validation.error)


class SqliteConceptStore(ConceptStore):

    def __init__(self, db_path: Optional[str] = None):
        self._db_path = db_path
        self._domain = ConceptDomainService()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = get_connection(self._db_path)
        except sqlite3.Error as e:
            raise TransportFailureError(f"Unable to open database: {e}", origin="database") from e
        try:
            yield conn
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ValidationFailedError(f"Constraint violated: {e}") from e
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception("SQLite operation failed")
            raise TransportFailureError(f"Database operation failed: {e}", origin="database") from e
        finally:
            conn.close()

    def _get(self, conn: sqlite3.Connection, concept_id: str) -> Concept:
        row = conn.execute("SELECT * FROM concepts WHERE id = ?", (concept_id,)).fetchone()
        if not row:
            raise NotFoundError(concept_id)
        return _row_to_concept(row)

    def fetch_all(self) -> List[Concept]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM concepts ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [_row_to_concept(r) for r in rows]

    def get_by_id(self, concept_id: str) -> Concept:
        with self._connect() as conn:
            return self._get(conn, concept_id)

    def create(self, draft: Concept) -> Concept:
        _check(draft)
        concept = _stamped(draft.with_changes(id=None), keep_id=False)
        with self._connect() as conn:
            conn.execute(_INSERT_SQL, _concept_to_row(concept))
            conn.commit()
        logger.info("Created concept %s (%r)", concept.id, concept.title)
        return concept

    def update(self, concept_id: str, patch: Mapping[str, Any]) -> Concept:
        with self._connect() as conn:
            current = self._get(conn, concept_id)
            result = self._domain.apply_patch(current, patch)
            if not result.is_success:
                raise ValidationFailedError(result.error)
            updated = result.value
            row = _concept_to_row(updated)
            assignments = ", ".join(f"{c} = :{c}" for c in _COLUMNS if c != "id")
            conn.execute(f"UPDATE concepts SET {assignments} WHERE id = :id", row)
            conn.commit()
        return updated

    def delete_by_id(self, concept_id: str) -> Concept:
        with self._connect() as conn:
            concept = self._get(conn, concept_id)
            conn.execute("DELETE FROM concepts WHERE id = ?", (concept_id,))
            conn.commit()
        logger.info("Deleted concept %s", concept_id)
        return concept

    def replace_all(self, concepts: Iterable[Concept]) -> int:
        batch = list(concepts)
        for position, concept in enumerate(batch):
            _check(concept, position)
        rows = [_concept_to_row(_stamped(c, keep_id=True)) for c in batch]

        with self._connect() as conn:
            # DELETE opens the transaction; a failed insert rolls it back too.
            conn.execute("DELETE FROM concepts")
            conn.executemany(_INSERT_SQL, rows)
            conn.commit()
        logger.info("Replaced store contents with %d concepts", len(rows))
        return len(rows)
