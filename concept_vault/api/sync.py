"""Bulk sync endpoints: full replace of the store, and full read-back."""
from __future__ import annotations
import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from concept_vault.api.errors import error_response
from concept_vault.application.concept_app_service import ConceptAppService
from concept_vault.container import get_concept_app_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/concepts/sync", tags=["sync"])


class SyncBody(BaseModel):
    concepts: Any = None


@router.post("")
def push_concepts(
    body: SyncBody,
    svc: ConceptAppService = Depends(get_concept_app_service),
):
    if not isinstance(body.concepts, list):
        return error_response(
            400,
            "Invalid data format",
            "Expected an array of concepts but received different data type",
        )
    result = svc.replace_all(body.concepts)
    if not result.is_success:
        return error_response(400, "Invalid concept data", result.error)

    logger.info("Synced %d concepts into the store", result.value)
    return {
        "success": True,
        "message": f"Successfully synced {result.value} concepts to database",
        "count": result.value,
    }


@router.get("")
def pull_concepts(svc: ConceptAppService = Depends(get_concept_app_service)):
    concepts = svc.list_concepts()
    return {
        "success": True,
        "message": f"Retrieved {len(concepts)} concepts from database",
        "concepts": [c.to_document() for c in concepts],
        "count": len(concepts),
    }
