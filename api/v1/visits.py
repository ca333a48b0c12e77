"""Visits API - approval, rejection and biometric check-in/out"""
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_current_actor, get_orchestrator, parse_id
from domain.models.visit import VisitRead, VisitStatusUpdate
from domain.models.visitor import VisitorSummary
from domain.roles import Actor
from domain.visit_orchestrator import VisitOrchestrator
from domain.visit_state import Intent

router = APIRouter()


class FaceMatchRequest(BaseModel):
    """Kiosk photo plus what the visitor is doing"""
    image_base64: str = Field(
        ...,
        alias="imageBase64",
        min_length=1,
        description="Base64 face image, data URI prefix allowed",
    )
    type: Intent = Field(..., description="CHECKIN or CHECKOUT")

    class Config:
        populate_by_name = True  # imageBase64 or image_base64


class FaceMatchResponse(BaseModel):
    visitor: VisitorSummary
    visit: VisitRead
    similarity: float
    message: Optional[str] = None


@router.post("/facematch", response_model=FaceMatchResponse)
async def facematch(
    request: FaceMatchRequest,
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    """
    Check a visitor in or out from a kiosk photo.
    No login: a registry match with similarity >= 0.9 is the authorization.
    """
    outcome = await orchestrator.process_match(request.image_base64, request.type)

    verb = "in" if request.type is Intent.CHECK_IN else "out"
    return FaceMatchResponse(
        visitor=VisitorSummary(
            id=outcome.visitor.id,
            full_name=outcome.visitor.full_name,
            image_base64=outcome.visitor.image_base64,
        ),
        visit=VisitRead.from_visit(outcome.visit),
        similarity=outcome.similarity,
        message=f"Visitor successfully checked {verb}",
    )


@router.get("/{visit_id}", response_model=VisitRead)
async def get_visit(
    visit_id: str,
    actor: Actor = Depends(get_current_actor),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    """Get a specific visit (department scoped)"""
    visit = await orchestrator.get_visit(parse_id(visit_id), actor)
    return VisitRead.from_visit(visit)


@router.post("/{visit_id}/approve", response_model=VisitRead)
async def approve_visit(
    visit_id: str,
    actor: Actor = Depends(get_current_actor),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    """
    Approve a pending visit.
    Allowed for the assigned host, or Admins of the visit's department, or SuperAdmins.
    """
    visit = await orchestrator.approve(parse_id(visit_id), actor)
    return VisitRead.from_visit(visit)


@router.post("/{visit_id}/reject", response_model=VisitRead)
async def reject_visit(
    visit_id: str,
    actor: Actor = Depends(get_current_actor),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    """Reject a pending visit (same permissions as approve)"""
    visit = await orchestrator.reject(parse_id(visit_id), actor)
    return VisitRead.from_visit(visit)


@router.put("/{visit_id}/status", response_model=VisitRead)
async def update_visit_status(
    visit_id: str,
    update: VisitStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    orchestrator: VisitOrchestrator = Depends(get_orchestrator),
):
    """Manual status change from the dashboard (e.g. check-in without the kiosk)"""
    visit = await orchestrator.change_status(parse_id(visit_id), actor, update.status)
    return VisitRead.from_visit(visit)
