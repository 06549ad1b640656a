"""Concept CRUD API endpoints."""
from __future__ import annotations
from typing import Optional, Union

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from concept_vault.api.errors import error_response
from concept_vault.application.concept_app_service import ConceptAppService
from concept_vault.container import get_concept_app_service

router = APIRouter(tags=["concepts"])


# ------------------------------------------------------------------
# Pydantic schemas
# ------------------------------------------------------------------
class ConceptBody(BaseModel):
    """Wire-named concept fields. Everything is optional so PUT can patch."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic_id: Optional[Union[int, float]] = Field(default=None, alias="topicID")
    topic: Optional[str] = None
    title: Optional[str] = None
    definition: Optional[str] = None
    detailed_explanation: Optional[str] = Field(default=None, alias="detailedExplanation")
    when_to_use: Optional[str] = Field(default=None, alias="whenToUse")
    why_need: Optional[str] = Field(default=None, alias="whyNeed")
    code_example: Optional[str] = Field(default=None, alias="codeExample")
    keyword: Optional[str] = None
    differences: Optional[str] = None

    def to_fields(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


# ------------------------------------------------------------------
# Health check
# ------------------------------------------------------------------
@router.get("/health")
def health():
    return {"status": "ok"}


# ------------------------------------------------------------------
# Concept endpoints
# ------------------------------------------------------------------
@router.get("/api/concepts")
def list_concepts(svc: ConceptAppService = Depends(get_concept_app_service)):
    return {"success": True, "data": [c.to_document() for c in svc.list_concepts()]}


@router.post("/api/concepts", status_code=status.HTTP_201_CREATED)
def create_concept(
    body: ConceptBody,
    svc: ConceptAppService = Depends(get_concept_app_service),
):
    result = svc.create_concept(body.to_fields())
    if not result.is_success:
        return error_response(400, "Invalid concept data", result.error)
    return {"success": True, "data": result.value.to_document()}


@router.get("/api/concepts/{concept_id}")
def get_concept(
    concept_id: str,
    svc: ConceptAppService = Depends(get_concept_app_service),
):
    return {"success": True, "data": svc.get_concept(concept_id).to_document()}


@router.put("/api/concepts/{concept_id}")
def update_concept(
    concept_id: str,
    body: ConceptBody,
    svc: ConceptAppService = Depends(get_concept_app_service),
):
    return {"success": True, "data": svc.update_concept(concept_id, body.to_fields()).to_document()}


@router.delete("/api/concepts/{concept_id}")
def delete_concept(
    concept_id: str,
    svc: ConceptAppService = Depends(get_concept_app_service),
):
    return {"success": True, "data": svc.delete_concept(concept_id).to_document()}
