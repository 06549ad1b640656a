"""Wiring for both entry points: the API gets the SQLite store, the CLI gets the HTTP gateway and cache."""
from __future__ import annotations
from functools import lru_cache
from typing import Optional

from concept_vault.application.concept_app_service import ConceptAppService
from concept_vault.application.workspace import ConceptWorkspace
from concept_vault.persistence.interfaces.concept_store import ConceptStore
from concept_vault.persistence.local_cache import LocalCache
from concept_vault.persistence.stores.http_concept_store import HttpConceptStore
from concept_vault.persistence.stores.sqlite_concept_store import SqliteConceptStore


# ------------------------------------------------------------------
# Server side
# ------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_concept_store() -> ConceptStore:
    return SqliteConceptStore()


@lru_cache(maxsize=1)
def get_concept_app_service() -> ConceptAppService:
    return ConceptAppService(store=get_concept_store())


# ------------------------------------------------------------------
# Client side
# ------------------------------------------------------------------
def build_workspace(api_base_url: Optional[str] = None, cache_path: Optional[str] = None) -> ConceptWorkspace:
    """A workspace that talks to the API at ``api_base_url`` and caches at ``cache_path``."""
    return ConceptWorkspace(HttpConceptStore(base_url=api_base_url), LocalCache(cache_path))
