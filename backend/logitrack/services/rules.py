"""Gamification rule table: seeding, editing and reset."""
from __future__ import annotations

from typing import List

from logitrack.core.logging import logger
from logitrack.models.gamification import (
    GamificationRule,
    GamificationRuleUpdate,
    RuleType,
)
from logitrack.services.audit import audit_service
from logitrack.services.repository import CollectionRepository
from logitrack.services.storage import GAMIFICATION_RULES


DEFAULT_RULES: List[GamificationRule] = [
    GamificationRule(
        id="rule-time-fast",
        name="Entrega Rápida",
        type=RuleType.TIME_BASED,
        points_awarded=50,
        threshold=20,
        description="+50 puntos si completa la ruta 20% más rápido que el promedio del cliente",
    ),
    GamificationRule(
        id="rule-time-slow",
        name="Entrega Lenta",
        type=RuleType.TIME_BASED,
        points_deducted=30,
        threshold=-20,
        description="-30 puntos si completa la ruta 20% más lento que el promedio del cliente",
    ),
    GamificationRule(
        id="rule-star-5",
        name="Calificación 5 Estrellas",
        type=RuleType.STAR_RATING,
        points_awarded=40,
        threshold=5,
        description="+40 puntos por calificación de 5 estrellas",
    ),
    GamificationRule(
        id="rule-star-4",
        name="Calificación 4 Estrellas",
        type=RuleType.STAR_RATING,
        points_awarded=20,
        threshold=4,
        description="+20 puntos por calificación de 4 estrellas",
    ),
    GamificationRule(
        id="rule-star-3",
        name="Calificación 3 Estrellas",
        type=RuleType.STAR_RATING,
        threshold=3,
        description="0 puntos por calificación de 3 estrellas",
    ),
    GamificationRule(
        id="rule-star-2",
        name="Calificación 2 Estrellas",
        type=RuleType.STAR_RATING,
        points_deducted=20,
        threshold=2,
        description="-20 puntos por calificación de 2 estrellas",
    ),
    GamificationRule(
        id="rule-star-1",
        name="Calificación 1 Estrella",
        type=RuleType.STAR_RATING,
        points_deducted=40,
        threshold=1,
        description="-40 puntos por calificación de 1 estrella",
    ),
    GamificationRule(
        id="rule-volume",
        name="Ruta Completada",
        type=RuleType.VOLUME,
        points_awarded=10,
        description="+10 puntos por cada ruta completada",
    ),
    GamificationRule(
        id="rule-streak",
        name="Semana Perfecta",
        type=RuleType.STREAK,
        points_awarded=100,
        threshold=7,
        min_stars=4,
        description="+100 puntos por 7 días consecutivos con calificación de 4+ estrellas",
    ),
]


class RuleTable:
    """Administrator-editable scoring rules, seeded with defaults on first access."""

    def __init__(self) -> None:
        self._repo = CollectionRepository(GAMIFICATION_RULES, "rule")

    def _seed(self) -> List[GamificationRule]:
        rules = [rule.model_copy(deep=True) for rule in DEFAULT_RULES]
        self._repo.save_all([rule.model_dump(mode="json") for rule in rules])
        logger.info("Seeded default gamification rules", count=len(rules))
        return rules

    def get_rules(self) -> List[GamificationRule]:
        rows = self._repo.all()
        if not rows:
            return self._seed()
        return [GamificationRule.model_validate(row) for row in rows]

    def enabled_rules(self) -> List[GamificationRule]:
        return [rule for rule in self.get_rules() if rule.enabled]

    def get_rule(self, rule_id: str) -> GamificationRule:
        for rule in self.get_rules():
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def update_rule(self, rule_id: str, updates: GamificationRuleUpdate, actor: str) -> GamificationRule:
        rules = self.get_rules()
        for index, rule in enumerate(rules):
            if rule.id != rule_id:
                continue
            patch = updates.model_dump(exclude_unset=True)
            updated = GamificationRule.model_validate({**rule.model_dump(), **patch})
            rules[index] = updated
            self._repo.save_all([item.model_dump(mode="json") for item in rules])
            audit_service.log_action(
                "UPDATE_GAMIFICATION_RULE",
                f"Updated rule {updated.name}",
                actor,
                metadata={"rule_id": rule_id, "changes": patch},
            )
            return updated
        raise KeyError(rule_id)

    def reset_to_default(self, actor: str) -> List[GamificationRule]:
        rules = self._seed()
        audit_service.log_action("RESET_GAMIFICATION_RULES", "Restored default gamification rules", actor)
        return rules


rule_table = RuleTable()
