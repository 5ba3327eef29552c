"""
Application-level operations: capabilities, app settings, demo data and
the local cache.
"""

import logging
from typing import Any, Optional

from ..training.models import (
    AssignmentDraft,
    Capabilities,
    Cycle,
    Exercise,
    ExerciseType,
    SessionType,
    StrengthSessionItem,
    StrengthSessionTemplate,
    SwimSessionItem,
    SwimSessionTemplate,
)
from ...infrastructure.mappers import (
    exercise_to_row,
    strength_item_to_row,
    strength_session_to_row,
    swim_item_to_row,
    swim_session_to_row,
)
from ...infrastructure.store.base import Query
from .assignments import AssignmentService
from .base import Service, utc_now, utc_today

logger = logging.getLogger(__name__)

DEMO_ATHLETE = "Camille"
DEMO_COLLECTIONS = (
    "exercises",
    "strength_sessions",
    "strength_session_items",
    "swim_sessions_catalog",
    "swim_session_items",
)


def demo_exercises() -> list[Exercise]:
    return [
        Exercise(id=1, number=1, name="Squat", description="Flexion des jambes"),
        Exercise(id=2, number=2, name="Développé Couché", description="Poussée horizontale"),
        Exercise(id=3, number=3, name="Tractions", description="Tirage vertical"),
        Exercise(
            id=4,
            number=4,
            name="Rotations Élastique",
            description="Coiffe des rotateurs",
            exercise_type=ExerciseType.WARMUP,
        ),
    ]


def demo_strength_session() -> StrengthSessionTemplate:
    return StrengthSessionTemplate(
        id=101,
        title="Full Body A",
        description="Séance globale",
        cycle=Cycle.ENDURANCE,
        items=[
            StrengthSessionItem(exercise_id=4, order_index=0, sets=2, reps=15, rest_seconds=30),
            StrengthSessionItem(exercise_id=1, order_index=1, sets=4, reps=10, rest_seconds=90, percent_1rm=70),
            StrengthSessionItem(exercise_id=2, order_index=2, sets=4, reps=10, rest_seconds=90, percent_1rm=70),
        ],
    )


def demo_swim_session() -> SwimSessionTemplate:
    return SwimSessionTemplate(
        id=201,
        name="VMA 100",
        description="Travail de vitesse",
        created_by=1,
        items=[
            SwimSessionItem(order_index=0, label="Échauffement 4N", distance=400, intensity="Souple", notes="Progressif"),
            SwimSessionItem(order_index=1, label="Corps NL", distance=1000, intensity="Max", notes="10x100 départ 1:30"),
        ],
    )


class AppService(Service):

    def get_capabilities(self) -> Capabilities:
        """Which storage answers right now and which optional features exist."""
        return Capabilities(
            mode=self._context.mode,
            version=self._context.settings.api_version,
            imports=self._functions is not None,
        )

    def get_app_settings(self, key: str) -> Optional[Any]:
        rows = self._store().select("app_settings", Query().eq("key", key))
        return rows[0].get("value") if rows else None

    def update_app_settings(self, key: str, value: Any) -> None:
        self._store().upsert(
            "app_settings",
            [{"key": key, "value": value, "updated_at": utc_now()}],
            on_conflict=("key",),
        )

    def seed_demo_data(self) -> dict[str, str]:
        """
        Fill the local mirror with a small demo catalog and one assignment.

        Replaces the local exercises and catalogs. Does nothing while the
        remote backend is in use.
        """
        if self._context.can_use_backend():
            logger.warning("Demo seed skipped, remote backend in use")
            return {"status": "skipped"}

        store = self._context.local_store
        for name in DEMO_COLLECTIONS:
            store.mirror.collection(name).remove()

        now = utc_now()
        store.insert("exercises", [
            {"id": exercise.id, **exercise_to_row(exercise)} for exercise in demo_exercises()
        ])

        strength = demo_strength_session()
        store.insert("strength_sessions", [
            {"id": strength.id, "created_at": now, **strength_session_to_row(strength)}
        ])
        store.insert("strength_session_items", [
            {"id": self._next_id(), **strength_item_to_row(item, strength.id, strength.cycle)}
            for item in strength.items
        ])

        swim = demo_swim_session()
        store.insert("swim_sessions_catalog", [
            {"id": swim.id, "created_at": now, **swim_session_to_row(swim)}
        ])
        store.insert("swim_session_items", [
            {"id": self._next_id(), **swim_item_to_row(item, swim.id)} for item in swim.items
        ])

        AssignmentService(self._context, self._functions).create_assignment(AssignmentDraft(
            session_id=strength.id,
            session_type=SessionType.STRENGTH,
            scheduled_date=utc_today(),
            target_athlete=DEMO_ATHLETE,
        ))
        logger.info("Demo data seeded")
        return {"status": "seeded"}

    def reset_cache(self) -> None:
        """Forget everything stored in the local mirror."""
        self._context.local_store.reset()
