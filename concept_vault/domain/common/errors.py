"""Failure taxonomy shared by the validator, the store gateways and the sync layer."""
from __future__ import annotations
from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    NOT_A_LIST = "not_a_list"
    SCHEMA_VIOLATION = "schema_violation"
    UNKNOWN_FIELD = "unknown_field"
    DUPLICATE_TITLE = "duplicate_title"
    EMPTY_BATCH = "empty_batch"
    TRANSPORT_FAILURE = "transport_failure"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    SUMMARY = "summary"


class StoreError(Exception):
    """Base class for anything a store gateway raises."""

    kind = ErrorKind.TRANSPORT_FAILURE


class NotFoundError(StoreError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, concept_id: str):
        super().__init__(f"Concept '{concept_id}' not found.")
        self.concept_id = concept_id


class ValidationFailedError(StoreError):
    kind = ErrorKind.VALIDATION_FAILED


class TransportFailureError(StoreError):
    """The backing store could not be reached.

    ``origin`` is ``"network"`` when the HTTP hop failed and ``"database"``
    when the service answered but its database did not.
    """

    kind = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, origin: str = "network"):
        super().__init__(message)
        self.origin = origin
