"""Messenger evaluation routes."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.models.gamification import MessengerEvaluation, MessengerEvaluationCreate
from logitrack.services.evaluations import evaluation_service

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.get("/questions")
def default_questions(context: ActorContext = Depends(get_actor_context)):
    return evaluation_service.default_questions()


@router.post("", response_model=MessengerEvaluation)
def save_evaluation(
    request: MessengerEvaluationCreate,
    context: ActorContext = Depends(require_roles("admin", "hr", "dispatcher")),
):
    try:
        return evaluation_service.save_evaluation(request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Messenger not found")


@router.get("/{messenger_id}", response_model=List[MessengerEvaluation])
def get_messenger_evaluations(messenger_id: str, context: ActorContext = Depends(get_actor_context)):
    return evaluation_service.get_messenger_evaluations(messenger_id)
