"""Shared fixtures: temporary SQLite store, cache file and an in-memory store double."""
from datetime import datetime, timezone

import pytest

from concept_vault.domain.common.errors import NotFoundError, ValidationFailedError
from concept_vault.domain.concept.models import Concept
from concept_vault.domain.concept.service import ConceptDomainService
from concept_vault.persistence.db import init_db
from concept_vault.persistence.interfaces.concept_store import ConceptStore
from concept_vault.persistence.local_cache import LocalCache
from concept_vault.persistence.stores.sqlite_concept_store import SqliteConceptStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeStore(ConceptStore):
    """In-memory ConceptStore that records calls and can be told to fail."""

    def __init__(self, concepts=None, error=None):
        self.concepts = list(concepts or [])
        self.error = error
        self.calls = []

    def _enter(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def _find(self, concept_id):
        for concept in self.concepts:
            if concept.id == concept_id:
                return concept
        raise NotFoundError(concept_id)

    def fetch_all(self):
        self._enter("fetch_all")
        return list(self.concepts)

    def get_by_id(self, concept_id):
        self._enter("get_by_id")
        return self._find(concept_id)

    def create(self, draft):
        self._enter("create")
        if not draft.title.strip():
            raise ValidationFailedError("title is required")
        created = draft.with_changes(id=f"id-{len(self.concepts) + 1}")
        self.concepts.insert(0, created)
        return created

    def update(self, concept_id, patch):
        self._enter("update")
        current = self._find(concept_id)
        result = ConceptDomainService().apply_patch(current, patch, now=FIXED_NOW)
        if not result.is_success:
            raise ValidationFailedError(result.error)
        self.concepts = [result.value if c.id == concept_id else c for c in self.concepts]
        return result.value

    def delete_by_id(self, concept_id):
        self._enter("delete_by_id")
        concept = self._find(concept_id)
        self.concepts = [c for c in self.concepts if c.id != concept_id]
        return concept

    def replace_all(self, concepts):
        self._enter("replace_all")
        self.concepts = list(concepts)
        return len(self.concepts)


@pytest.fixture
def make_doc():
    def _make(title="Closure", **overrides):
        doc = {
            "title": title,
            "topic": "JavaScript",
            "definition": "A function bundled with its lexical scope.",
            "keyword": "scope",
        }
        doc.update(overrides)
        return doc
    return _make


@pytest.fixture
def make_concept(make_doc):
    counter = {"n": 0}

    def _make(title="Closure", persisted=True, **overrides):
        counter["n"] += 1
        concept = Concept.build(make_doc(title, **overrides), now=FIXED_NOW)
        if persisted:
            concept = concept.with_changes(id=f"c{counter['n']}")
        return concept
    return _make


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "concepts.db")
    init_db(path)
    return path


@pytest.fixture
def store(db_path):
    return SqliteConceptStore(db_path)


@pytest.fixture
def cache(tmp_path):
    return LocalCache(str(tmp_path / "cache" / "concepts.json"))


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_store_cls():
    return FakeStore


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def blocked_cache(tmp_path):
    """A cache whose parent path is a regular file, so every write fails with an OSError."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return LocalCache(str(blocker / "concepts.json"))
