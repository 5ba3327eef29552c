"""
Exercise library and strength session templates.

Item lists are normalized and validated before anything is written: an
invalid item rejects the whole template. Updating a template replaces its
items. Deleting an exercise removes it from every template.
"""

import logging
from typing import Any, Iterable, Optional

from ..errors import NotFoundError
from ..training.models import Cycle, Exercise, ResolvedItem, StrengthSessionItem, StrengthSessionTemplate
from ..training.strength import (
    enrich_items_with_exercise_names,
    normalize_strength_items,
    resolve_session_items,
    validate_strength_items,
)
from ...infrastructure.mappers import (
    exercise_from_row,
    exercise_to_row,
    present,
    strength_item_to_row,
    strength_session_from_row,
    strength_session_to_row,
)
from ...infrastructure.store.base import CollectionStore, Query, by_id
from .base import Service, index_by, utc_now

logger = logging.getLogger(__name__)

EXERCISE_NOT_FOUND = "Exercice introuvable"
STRENGTH_SESSION_NOT_FOUND = "Séance introuvable"


class ExerciseService(Service):

    def get_exercises(self) -> list[Exercise]:
        rows = self._store().select("exercises", Query().order_by("numero_exercice"))
        return present(exercise_from_row(row) for row in rows)

    def create_exercise(self, exercise: Exercise) -> Exercise:
        if not exercise.id:
            exercise.id = self._next_id()
        self._store().insert("exercises", [exercise_to_row(exercise)])
        logger.info("Exercise created", extra={"exercise_id": exercise.id})
        return exercise

    def update_exercise(self, exercise: Exercise) -> Exercise:
        store = self._store()
        if not store.select("exercises", by_id(exercise.id)):
            raise NotFoundError(EXERCISE_NOT_FOUND)
        values = exercise_to_row(exercise)
        values.pop("id")
        store.update("exercises", values, by_id(exercise.id))
        return exercise

    def delete_exercise(self, exercise_id: int) -> None:
        store = self._store()
        store.delete("strength_session_items", Query().eq("exercise_id", exercise_id))
        store.delete("exercises", by_id(exercise_id))
        logger.info("Exercise deleted", extra={"exercise_id": exercise_id})


class StrengthSessionService(Service):

    def _prepare_items(
        self,
        items: Optional[Iterable[Any]],
        cycle: Cycle,
    ) -> list[StrengthSessionItem]:
        normalized = normalize_strength_items(items, cycle)
        validate_strength_items(normalized)
        return sorted(normalized, key=lambda item: item.order_index)

    def _write_items(
        self,
        store: CollectionStore,
        session_id: int,
        items: list[StrengthSessionItem],
        cycle: Cycle,
    ) -> None:
        rows = []
        for item in items:
            row = strength_item_to_row(item, session_id, cycle)
            row["id"] = self._next_id()
            rows.append(row)
        store.insert("strength_session_items", rows)

    def _exercises(self, store: CollectionStore) -> list[Exercise]:
        return present(exercise_from_row(row) for row in store.select("exercises"))

    def get_strength_sessions(self) -> list[StrengthSessionTemplate]:
        """Templates newest first, items ordered and named from the exercise library."""
        store = self._store()
        rows = store.select("strength_sessions", Query().order_by("created_at", descending=True))
        if not rows:
            return []
        items_by_session = index_by(
            store.select("strength_session_items", Query().in_("session_id", [row["id"] for row in rows])),
            "session_id",
        )
        exercises = self._exercises(store)
        templates = present(
            strength_session_from_row(row, items_by_session.get(row.get("id"), []))
            for row in rows
        )
        for template in templates:
            enrich_items_with_exercise_names(template.items, exercises)
        return templates

    def get_strength_session(self, session_id: int) -> StrengthSessionTemplate:
        store = self._store()
        rows = store.select("strength_sessions", by_id(session_id))
        template = strength_session_from_row(
            rows[0] if rows else None,
            store.select("strength_session_items", Query().eq("session_id", session_id)),
        )
        if template is None:
            raise NotFoundError(STRENGTH_SESSION_NOT_FOUND)
        enrich_items_with_exercise_names(template.items, self._exercises(store))
        return template

    def create_strength_session(
        self,
        title: str,
        description: str = "",
        cycle: Any = None,
        items: Optional[Iterable[Any]] = None,
    ) -> StrengthSessionTemplate:
        session_cycle = Cycle.parse(cycle)
        prepared = self._prepare_items(items, session_cycle)

        template = StrengthSessionTemplate(
            id=self._next_id(),
            title=title or "",
            description=description or "",
            cycle=session_cycle,
            items=prepared,
            created_at=utc_now(),
        )
        store = self._store()
        row = strength_session_to_row(template)
        row.update({"id": template.id, "created_at": template.created_at})
        store.insert("strength_sessions", [row])
        self._write_items(store, template.id, prepared, session_cycle)

        enrich_items_with_exercise_names(template.items, self._exercises(store))
        logger.info(
            "Strength session created",
            extra={"session_id": template.id, "item_count": len(prepared)}
        )
        return template

    def update_strength_session(
        self,
        session_id: int,
        title: str,
        description: str = "",
        cycle: Any = None,
        items: Optional[Iterable[Any]] = None,
    ) -> StrengthSessionTemplate:
        session_cycle = Cycle.parse(cycle)
        prepared = self._prepare_items(items, session_cycle)

        store = self._store()
        existing = store.select("strength_sessions", by_id(session_id))
        if not existing:
            raise NotFoundError(STRENGTH_SESSION_NOT_FOUND)

        template = StrengthSessionTemplate(
            id=session_id,
            title=title or "",
            description=description or "",
            cycle=session_cycle,
            items=prepared,
            created_at=existing[0].get("created_at"),
        )
        store.update("strength_sessions", strength_session_to_row(template), by_id(session_id))
        store.delete("strength_session_items", Query().eq("session_id", session_id))
        self._write_items(store, session_id, prepared, session_cycle)

        enrich_items_with_exercise_names(template.items, self._exercises(store))
        return template

    def persist_order(self, template: StrengthSessionTemplate) -> StrengthSessionTemplate:
        """Save a reordered template; item order_index values are what gets stored."""
        return self.update_strength_session(
            template.id,
            template.title,
            template.description,
            template.cycle,
            template.items,
        )

    def delete_strength_session(self, session_id: int) -> None:
        store = self._store()
        store.delete("strength_session_items", Query().eq("session_id", session_id))
        store.delete("strength_sessions", by_id(session_id))

    def resolve_items(self, session_id: int, cycle: Any = None) -> list[ResolvedItem]:
        """Items of a template ready to perform in a cycle, parameters from the exercises."""
        template = self.get_strength_session(session_id)
        session_cycle = Cycle.parse(cycle if cycle is not None else template.cycle)
        return resolve_session_items(template.items, session_cycle, self._exercises(self._store()))
