"""ConceptStore backed by the Concept Vault HTTP API (``requests``)."""
from __future__ import annotations
import logging
from typing import Any, Iterable, List, Mapping, Optional

import requests

from concept_vault.core.config import API_BASE_URL, REQUEST_TIMEOUT
from concept_vault.domain.common.errors import (
    NotFoundError,
    StoreError,
    TransportFailureError,
    ValidationFailedError,
)
from concept_vault.domain.concept.models import Concept
from concept_vault.persistence.interfaces.concept_store import ConceptStore

logger = logging.getLogger(__name__)

HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class HttpConceptStore(ConceptStore):

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url = (base_url or API_BASE_URL).rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout if timeout is not None else REQUEST_TIMEOUT

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, concept_id: Optional[str] = None, **kwargs) -> dict:
        url = f"{self._base_url}{path}"
        try:
            res = self._session.request(method, url, headers=HEADERS, timeout=self._timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransportFailureError(f"Unable to reach {url}: {e}", origin="network") from e
        except requests.RequestException as e:
            raise StoreError(f"{method} {url} failed: {e}") from e

        try:
            body = res.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        detail = body.get("details") or body.get("error") or body.get("detail") or f"HTTP {res.status_code}"

        if res.status_code == 404 and concept_id is not None:
            raise NotFoundError(concept_id)
        if res.status_code in (400, 422):
            raise ValidationFailedError(str(detail))
        if res.status_code == 503:
            raise TransportFailureError(str(detail), origin="database")
        if res.status_code >= 400 or not body.get("success", False):
            logger.warning("%s %s returned %s: %s", method, url, res.status_code, detail)
            raise StoreError(str(detail))
        return body

    # ------------------------------------------------------------------
    # ConceptStore
    # ------------------------------------------------------------------
    def fetch_all(self) -> List[Concept]:
        body = self._request("GET", "/api/concepts")
        return [Concept.from_document(d) for d in body.get("data") or []]

    def get_by_id(self, concept_id: str) -> Concept:
        body = self._request("GET", f"/api/concepts/{concept_id}", concept_id=concept_id)
        return Concept.from_document(body["data"])

    def create(self, draft: Concept) -> Concept:
        doc = draft.to_document()
        doc.pop("_id", None)
        body = self._request("POST", "/api/concepts", json=doc)
        return Concept.from_document(body["data"])

    def update(self, concept_id: str, patch: Mapping[str, Any]) -> Concept:
        body = self._request("PUT", f"/api/concepts/{concept_id}", concept_id=concept_id, json=dict(patch))
        return Concept.from_document(body["data"])

    def delete_by_id(self, concept_id: str) -> Concept:
        body = self._request("DELETE", f"/api/concepts/{concept_id}", concept_id=concept_id)
        return Concept.from_document(body["data"])

    def replace_all(self, concepts: Iterable[Concept]) -> int:
        docs = [c.to_document() for c in concepts]
        body = self._request("POST", "/api/concepts/sync", json={"concepts": docs})
        return int(body.get("count", len(docs)))
