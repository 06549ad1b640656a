"""Validator tests: parse, shape, per-record rules and the all-or-nothing gate."""
import json

import pytest

from concept_vault.domain.common.errors import ErrorKind
from concept_vault.domain.concept.rules import validate_payload, validate_records


def _levels(result, level):
    return [d for d in result.diagnostics if d.level == level]


# ------------------------------------------------------------------
# Parsing and shape
# ------------------------------------------------------------------
def test_malformed_json_is_single_error(now):
    result = validate_payload('[{"title": "A",', now=now)
    assert not result.is_valid
    assert result.total_concepts == 0
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.level == "error"
    assert diag.kind == ErrorKind.MALFORMED_INPUT
    assert diag.message.startswith("JSON parsing failed:")
    assert diag.line == 1


def test_root_must_be_a_list(now):
    result = validate_payload('{"title": "A"}', now=now)
    assert not result.is_valid
    assert [d.kind for d in result.diagnostics] == [ErrorKind.NOT_A_LIST]
    assert result.diagnostics[0].level == "error"


def test_empty_list_is_warning_not_error(now):
    result = validate_payload("[]", now=now)
    assert not result.is_valid
    assert result.valid_concepts == []
    assert result.total_concepts == 0
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].level == "warning"
    assert result.diagnostics[0].kind == ErrorKind.EMPTY_BATCH
    assert result.errors == []


def test_bytes_and_parsed_values_are_accepted(make_doc, now):
    docs = [make_doc("A"), make_doc("B")]
    from_bytes = validate_payload(json.dumps(docs).encode("utf-8"), now=now)
    from_value = validate_payload(docs, now=now)
    assert from_bytes == from_value
    assert from_value.is_valid


# ------------------------------------------------------------------
# Well-formed batches
# ------------------------------------------------------------------
def test_valid_batch_accepts_every_record(make_doc, now):
    docs = [make_doc("A"), make_doc("B"), make_doc("C")]
    result = validate_payload(json.dumps(docs), now=now)
    assert result.is_valid
    assert result.total_concepts == 3
    assert [c.title for c in result.valid_concepts] == ["A", "B", "C"]
    assert result.errors == []
    summary = result.diagnostics[-1]
    assert summary.level == "info"
    assert summary.kind == ErrorKind.SUMMARY
    assert "3 concepts" in summary.message


def test_accepted_records_are_normalized(now):
    doc = {
        "title": "  Closure ",
        "topic": " JS",
        "definition": "def ",
        "keyword": " scope",
        "codeExample": "  const f = () => x;  ",
        "createdAt": "2023-01-02T03:04:05.000Z",
        "updatedAt": "not a date",
    }
    concept = validate_payload([doc], now=now).valid_concepts[0]
    assert concept.title == "Closure"
    assert concept.topic == "JS"
    assert concept.definition == "def"
    assert concept.keyword == "scope"
    assert concept.code_example == "const f = () => x;"
    assert concept.why_need == ""
    assert concept.differences == ""
    assert concept.topic_id == 0
    assert concept.id is None
    assert concept.created_at.year == 2023
    assert concept.created_at.tzinfo is not None
    assert concept.updated_at == now


def test_validation_is_repeatable(make_doc, now):
    content = json.dumps([make_doc("A"), make_doc("a"), {"title": 3}])
    assert validate_payload(content, now=now) == validate_payload(content, now=now)


# ------------------------------------------------------------------
# Required fields
# ------------------------------------------------------------------
def test_missing_required_field_flags_only_that_record(make_doc, now):
    broken = make_doc("B")
    del broken["definition"]
    result = validate_payload([make_doc("A"), broken, make_doc("C")], now=now)

    errors = result.errors
    assert len(errors) == 1
    assert errors[0].field == "definition"
    assert errors[0].index == 1
    assert errors[0].kind == ErrorKind.SCHEMA_VIOLATION
    assert [c.title for c in result.valid_concepts] == ["A", "C"]
    assert not result.is_valid
    assert _levels(result, "info") == []


def test_required_field_problems_are_distinct(make_doc, now):
    result = validate_payload(
        [
            make_doc("A", keyword=None),
            make_doc(5),
            make_doc("C", topic="   "),
        ],
        now=now,
    )
    messages = [(d.index, d.field, d.message) for d in result.errors]
    assert messages == [
        (0, "keyword", 'Missing required field: "keyword"'),
        (1, "title", 'Field "title" must be a string'),
        (2, "topic", 'Field "topic" cannot be empty'),
    ]
    assert result.valid_concepts == []


def test_non_object_entry_is_rejected_alone(make_doc, now):
    result = validate_payload([42, make_doc("A")], now=now)
    assert len(result.errors) == 1
    assert result.errors[0].index == 0
    assert "position 1" in result.errors[0].message
    assert [c.title for c in result.valid_concepts] == ["A"]
    assert not result.is_valid


# ------------------------------------------------------------------
# Advisory diagnostics
# ------------------------------------------------------------------
def test_unknown_field_is_a_warning(make_doc, now):
    result = validate_payload([make_doc("A", colour="blue")], now=now)
    assert result.is_valid
    warnings = result.warnings
    assert len(warnings) == 1
    assert warnings[0].kind == ErrorKind.UNKNOWN_FIELD
    assert warnings[0].field == "colour"


def test_store_metadata_is_warned_and_dropped(make_doc, now):
    result = validate_payload([make_doc("A", _id="abc123", __v=0)], now=now)
    assert result.is_valid
    assert [(w.kind, w.field) for w in result.warnings] == [
        (ErrorKind.UNKNOWN_FIELD, "_id"),
        (ErrorKind.UNKNOWN_FIELD, "__v"),
    ]
    assert result.warnings[0].message == 'Unknown field "_id" will be ignored'
    assert result.valid_concepts[0].id is None


def test_duplicate_titles_scenario(now):
    content = json.dumps([
        {"title": "A", "topic": "T", "definition": "D", "keyword": "K"},
        {"title": "a", "topic": "T2", "definition": "D2", "keyword": "K2"},
    ])
    result = validate_payload(content, now=now)
    assert result.total_concepts == 2
    assert len(result.warnings) == 1
    assert result.warnings[0].kind == ErrorKind.DUPLICATE_TITLE
    assert result.warnings[0].index == 1
    assert len(result.valid_concepts) == 2
    assert result.is_valid


def test_duplicate_is_still_checked_for_required_fields(make_doc, now):
    dup = make_doc(" closure ")
    del dup["keyword"]
    result = validate_payload([make_doc("Closure"), dup], now=now)
    kinds = [(d.kind, d.index) for d in result.diagnostics]
    assert (ErrorKind.DUPLICATE_TITLE, 1) in kinds
    assert (ErrorKind.SCHEMA_VIOLATION, 1) in kinds
    assert len(result.valid_concepts) == 1
    assert not result.is_valid


def test_non_string_optional_text_is_an_error(make_doc, now):
    result = validate_payload([make_doc("A", whenToUse=["x"]), make_doc("B", whyNeed=None)], now=now)
    assert not result.is_valid
    assert [(e.index, e.field, e.message) for e in result.errors] == [
        (0, "whenToUse", 'Field "whenToUse" must be a string'),
    ]
    assert [c.title for c in result.valid_concepts] == ["B"]
    assert result.valid_concepts[0].why_need == ""


# ------------------------------------------------------------------
# topicID
# ------------------------------------------------------------------
def test_topic_id_must_be_numeric(make_doc, now):
    result = validate_records(
        [
            make_doc("A", topicID="3"),
            make_doc("B", topicID=True),
            make_doc("N", topicID=None),
            make_doc("F", topicID=float("nan")),
            make_doc("I", topicID=float("inf")),
            make_doc("C", topicID=7),
        ],
        now=now,
    )
    assert [(d.index, d.field) for d in result.errors] == [(i, "topicID") for i in range(5)]
    assert [c.topic_id for c in result.valid_concepts] == [7]


# ------------------------------------------------------------------
# Result conversion
# ------------------------------------------------------------------
def test_to_result(make_doc, now):
    ok = validate_payload([make_doc("A")], now=now).to_result()
    assert ok.is_success
    assert [c.title for c in ok.value] == ["A"]

    failed = validate_payload([{"title": "A"}], now=now).to_result()
    assert not failed.is_success
    assert failed.error.startswith("Concept 1: ")
    assert failed.kind == ErrorKind.SCHEMA_VIOLATION

    empty = validate_payload("[]", now=now).to_result()
    assert not empty.is_success
    assert "no concepts" in empty.error
    assert empty.kind == ErrorKind.EMPTY_BATCH


@pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
def test_non_json_number_tokens_are_malformed(make_doc, token):
    content = json.dumps([make_doc("A", topicID=0)]).replace('"topicID": 0', f'"topicID": {token}')

    result = validate_payload(content)

    assert not result.is_valid
    assert [d.kind for d in result.diagnostics] == [ErrorKind.MALFORMED_INPUT]
    assert result.diagnostics[0].message.startswith("JSON parsing failed")
    assert result.valid_concepts == []
