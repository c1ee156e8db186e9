"""Periodic messenger evaluations."""
from __future__ import annotations

from typing import List

from logitrack.models.gamification import (
    EvaluationCategory,
    MessengerEvaluation,
    MessengerEvaluationCreate,
)
from logitrack.services.audit import audit_service
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.storage import MESSENGER_EVALUATIONS, MESSENGERS


DEFAULT_QUESTIONS = [
    ("q1", "¿Llega a tiempo a sus rutas?", EvaluationCategory.PUNCTUALITY),
    ("q2", "¿Trata bien a los clientes?", EvaluationCategory.CUSTOMER_SERVICE),
    ("q3", "¿Mantiene el vehículo en buen estado?", EvaluationCategory.VEHICLE_CARE),
    ("q4", "¿Responde rápidamente a comunicaciones?", EvaluationCategory.COMMUNICATION),
    ("q5", "¿Mantiene profesionalismo en el trabajo?", EvaluationCategory.PROFESSIONALISM),
    ("q6", "¿Sigue las normas de seguridad?", EvaluationCategory.SAFETY),
    ("q7", "¿Es confiable y responsable?", EvaluationCategory.RELIABILITY),
    ("q8", "¿Resuelve problemas efectivamente?", EvaluationCategory.PROBLEM_SOLVING),
]


class EvaluationService:
    def __init__(self) -> None:
        self._evaluations = CollectionRepository(MESSENGER_EVALUATIONS, "eval")
        self._messengers = CollectionRepository(MESSENGERS, "messenger")

    @staticmethod
    def default_questions() -> List[dict]:
        return [
            {"id": question_id, "question": text, "category": category.value}
            for question_id, text, category in DEFAULT_QUESTIONS
        ]

    def save_evaluation(self, request: MessengerEvaluationCreate, actor: str) -> MessengerEvaluation:
        messenger = self._messengers.get(request.messenger_id)
        name = f"{messenger.get('first_name', '')} {messenger.get('last_name', '')}".strip()
        total = sum(question.rating for question in request.questions) / len(request.questions)

        evaluation = MessengerEvaluation(
            id=new_id("eval"),
            messenger_id=request.messenger_id,
            messenger_name=name or "Unknown",
            evaluated_by=actor,
            evaluated_at=utc_now(),
            questions=request.questions,
            total_score=round(total, 1),
            notes=request.notes,
        )
        self._evaluations.append(evaluation.model_dump(mode="json"))
        audit_service.log_action(
            "CREATE_EVALUATION",
            f"Evaluated {evaluation.messenger_name}: {evaluation.total_score}",
            actor,
            metadata={"evaluation_id": evaluation.id, "messenger_id": request.messenger_id},
        )
        return evaluation

    def get_messenger_evaluations(self, messenger_id: str) -> List[MessengerEvaluation]:
        evaluations = [
            MessengerEvaluation.model_validate(row)
            for row in self._evaluations.all()
            if row.get("messenger_id") == messenger_id
        ]
        return sorted(evaluations, key=lambda item: item.evaluated_at, reverse=True)


evaluation_service = EvaluationService()
