import pytest

from concept_vault.domain.common.errors import (
    NotFoundError,
    TransportFailureError,
    ValidationFailedError,
)
from concept_vault.domain.concept.models import Concept
from concept_vault.persistence.stores.sqlite_concept_store import SqliteConceptStore


def test_create_assigns_id_and_keeps_timestamps(store, make_concept, now):
    created = store.create(make_concept("Closure", persisted=False))

    assert created.id
    assert created.created_at == now
    assert store.get_by_id(created.id) == created


def test_create_rejects_blank_required_field(store):
    with pytest.raises(ValidationFailedError):
        store.create(Concept(title="  ", topic="JS", definition="d", keyword="k"))
    assert store.fetch_all() == []


def test_fetch_all_is_newest_first(store, make_concept):
    store.create(make_concept("First", persisted=False))
    store.create(make_concept("Second", persisted=False))

    assert [c.title for c in store.fetch_all()] == ["Second", "First"]


def test_update_patches_fields(store, make_concept, now):
    created = store.create(make_concept("Closure", persisted=False))

    updated = store.update(created.id, {"definition": "Changed", "topicID": 7})

    assert updated.definition == "Changed"
    assert updated.topic_id == 7
    assert updated.created_at == now
    assert updated.updated_at > now
    assert store.get_by_id(created.id) == updated


def test_update_and_delete_unknown_id(store):
    with pytest.raises(NotFoundError):
        store.update("missing", {"title": "x"})
    with pytest.raises(NotFoundError):
        store.delete_by_id("missing")


def test_delete_returns_removed_concept(store, make_concept):
    created = store.create(make_concept("Closure", persisted=False))

    assert store.delete_by_id(created.id) == created
    assert store.fetch_all() == []


def test_replace_all_overwrites_contents(store, make_concept):
    store.create(make_concept("Old", persisted=False))
    incoming = [make_concept("A"), make_concept("B", persisted=False)]

    assert store.replace_all(incoming) == 2

    stored = store.fetch_all()
    assert sorted(c.title for c in stored) == ["A", "B"]
    assert incoming[0].id in {c.id for c in stored}
    assert all(c.id for c in stored)


def test_replace_all_with_invalid_record_changes_nothing(store, make_concept):
    store.create(make_concept("Keep", persisted=False))
    bad = Concept(title="Bad", topic="", definition="d", keyword="k")

    with pytest.raises(ValidationFailedError) as exc:
        store.replace_all([make_concept("A"), bad])

    assert "index 1" in str(exc.value)
    assert [c.title for c in store.fetch_all()] == ["Keep"]


def test_replace_all_rolls_back_on_duplicate_ids(store, make_concept):
    store.create(make_concept("Keep", persisted=False))
    a = make_concept("A")
    clash = make_concept("B").with_changes(id=a.id)

    with pytest.raises(ValidationFailedError):
        store.replace_all([a, clash])

    assert [c.title for c in store.fetch_all()] == ["Keep"]


def test_unreachable_database_is_a_transport_failure(tmp_path):
    store = SqliteConceptStore(str(tmp_path / "no-such-dir" / "concepts.db"))

    with pytest.raises(TransportFailureError) as exc:
        store.fetch_all()
    assert exc.value.origin == "database"
