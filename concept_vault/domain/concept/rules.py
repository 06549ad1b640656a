"""Business rules for the Concept domain: validates untrusted import payloads.

The field rules are declared once in ``CONCEPT_SCHEMA`` and walked
generically. Validation never raises and performs no I/O: given the same
input and the same ``now`` it always produces the same result, so it can be
run once to preview an import and again to commit it.
"""
from __future__ import annotations
import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple

from concept_vault.domain.common.errors import ErrorKind
from concept_vault.domain.common.result import Result
from concept_vault.domain.concept.models import Concept, title_key, utc_now

ERROR = "error"
WARNING = "warning"
INFO = "info"

TEXT = "text"
NUMBER = "number"
TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class FieldRule:
    name: str
    kind: str
    required: bool = False


CONCEPT_SCHEMA: Tuple[FieldRule, ...] = (
    FieldRule("title", TEXT, required=True),
    FieldRule("topic", TEXT, required=True),
    FieldRule("definition", TEXT, required=True),
    FieldRule("keyword", TEXT, required=True),
    FieldRule("topicID", NUMBER),
    FieldRule("detailedExplanation", TEXT),
    FieldRule("whenToUse", TEXT),
    FieldRule("whyNeed", TEXT),
    FieldRule("codeExample", TEXT),
    FieldRule("differences", TEXT),
    FieldRule("createdAt", TIMESTAMP),
    FieldRule("updatedAt", TIMESTAMP),
)

REQUIRED_TEXT_FIELDS: Tuple[str, ...] = tuple(r.name for r in CONCEPT_SCHEMA if r.required)
KNOWN_FIELDS = frozenset(r.name for r in CONCEPT_SCHEMA)

_MISSING = object()


@dataclass
class Diagnostic:
    level: str  # error | warning | info
    kind: ErrorKind
    message: str
    field: Optional[str] = None
    index: Optional[int] = None
    line: Optional[int] = None

    def describe(self) -> str:
        prefix = f"Concept {self.index + 1}: " if self.index is not None else ""
        return prefix + self.message


@dataclass
class ValidationResult:
    is_valid: bool = False
    diagnostics: List[Diagnostic] = field(default_factory=list)
    valid_concepts: List[Concept] = field(default_factory=list)
    total_concepts: int = 0

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == WARNING]

    def to_result(self) -> Result[List[Concept]]:
        if self.is_valid:
            return Result.ok(list(self.valid_concepts))
        problems = self.errors or self.diagnostics
        if not problems:
            return Result.fail("No concepts to import.", ErrorKind.EMPTY_BATCH)
        return Result.fail(problems[0].describe(), problems[0].kind)


# ------------------------------------------------------------------
# Entry points
# ------------------------------------------------------------------
def validate_payload(content: Any, now: Optional[datetime] = None) -> ValidationResult:
    """Validate raw import content (JSON text/bytes or an already-parsed value)."""
    if isinstance(content, (bytes, bytearray)):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as e:
            return _malformed(f"JSON parsing failed: {e}")
    if isinstance(content, str):
        try:
            data = json.loads(content, parse_constant=_reject_constant)
        except ValueError as e:
            return _malformed(f"JSON parsing failed: {e}", line=getattr(e, "lineno", None))
        return validate_records(data, now=now)
    return validate_records(content, now=now)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Unexpected token '{token}' in JSON")


def validate_records(data: Any, now: Optional[datetime] = None) -> ValidationResult:
    """Validate a parsed value expected to be a list of concept objects."""
    result = ValidationResult()

    if not isinstance(data, list):
        result.diagnostics.append(
            Diagnostic(ERROR, ErrorKind.NOT_A_LIST, "Root element must be an array of concepts")
        )
        return result

    result.total_concepts = len(data)
    if not data:
        result.diagnostics.append(
            Diagnostic(WARNING, ErrorKind.EMPTY_BATCH, "The file contains no concepts to import")
        )
        return result

    now = now or utc_now()
    seen_titles: set = set()
    for index, record in enumerate(data):
        diagnostics = _check_record(record, index, seen_titles)
        result.diagnostics.extend(diagnostics)
        if not any(d.level == ERROR for d in diagnostics):
            result.valid_concepts.append(Concept.build(_sanitize(record), now=now))

    has_errors = any(d.level == ERROR for d in result.diagnostics)
    result.is_valid = bool(result.valid_concepts) and not has_errors
    if result.is_valid:
        result.diagnostics.append(
            Diagnostic(
                INFO,
                ErrorKind.SUMMARY,
                f"Validation successful! {len(result.valid_concepts)} concepts ready for import",
            )
        )
    return result


# ------------------------------------------------------------------
# Per-record checks
# ------------------------------------------------------------------
def _malformed(message: str, line: Optional[int] = None) -> ValidationResult:
    result = ValidationResult()
    result.diagnostics.append(Diagnostic(ERROR, ErrorKind.MALFORMED_INPUT, message, line=line))
    return result


def _check_record(record: Any, index: int, seen_titles: set) -> List[Diagnostic]:
    if not isinstance(record, dict):
        return [
            Diagnostic(
                ERROR,
                ErrorKind.SCHEMA_VIOLATION,
                f"Concept at position {index + 1} is not a valid object",
                index=index,
            )
        ]

    found: List[Diagnostic] = []

    for rule in CONCEPT_SCHEMA:
        if rule.required:
            message = _required_text_problem(record.get(rule.name, _MISSING), rule.name)
            if message:
                found.append(Diagnostic(ERROR, ErrorKind.SCHEMA_VIOLATION, message, rule.name, index))

    for key in record:
        if key not in KNOWN_FIELDS:
            found.append(
                Diagnostic(
                    WARNING, ErrorKind.UNKNOWN_FIELD, f'Unknown field "{key}" will be ignored', key, index
                )
            )

    title = record.get("title")
    if isinstance(title, str):
        key = title_key(title)
        if key in seen_titles:
            found.append(
                Diagnostic(
                    WARNING,
                    ErrorKind.DUPLICATE_TITLE,
                    f'Duplicate title "{title}" - only the first occurrence will be imported',
                    "title",
                    index,
                )
            )
        else:
            seen_titles.add(key)

    for rule in CONCEPT_SCHEMA:
        if rule.required or rule.name not in record:
            continue
        value = record[rule.name]
        if rule.kind == NUMBER and not _is_number(value):
            found.append(
                Diagnostic(
                    ERROR, ErrorKind.SCHEMA_VIOLATION, f'Field "{rule.name}" must be a number', rule.name, index
                )
            )
        elif rule.kind == TEXT and value is not None and not isinstance(value, str):
            found.append(
                Diagnostic(
                    ERROR, ErrorKind.SCHEMA_VIOLATION, f'Field "{rule.name}" must be a string', rule.name, index
                )
            )

    return found


def _required_text_problem(value: Any, name: str) -> Optional[str]:
    if value is _MISSING or value is None:
        return f'Missing required field: "{name}"'
    if not isinstance(value, str):
        return f'Field "{name}" must be a string'
    if not value.strip():
        return f'Field "{name}" cannot be empty'
    return None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _sanitize(record: dict) -> dict:
    """Keep only schema fields; identifiers and unknown keys are dropped."""
    return {r.name: record[r.name] for r in CONCEPT_SCHEMA if r.name in record}


def missing_required_field(doc: Any) -> Optional[str]:
    """Return the first required field that is absent or blank, or None."""
    if not isinstance(doc, dict):
        return REQUIRED_TEXT_FIELDS[0]
    for name in REQUIRED_TEXT_FIELDS:
        value = doc.get(name)
        if not isinstance(value, str) or not value.strip():
            return name
    return None


def validate_concept_content(data: dict) -> Result[dict]:
    """Validates that a single concept (form or store write) has the required fields."""
    missing = missing_required_field(data)
    if missing:
        return Result.fail(f"Concept '{missing}' is required and cannot be empty.")
    topic_id = data.get("topicID")
    if topic_id is not None and not _is_number(topic_id):
        return Result.fail("Concept 'topicID' must be a number.")
    return Result.ok(data)
