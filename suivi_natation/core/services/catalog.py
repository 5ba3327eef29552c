"""
Swim session catalog: coach-curated swim templates and their item lines.
"""

import logging
from typing import Optional

from ..training.models import SwimSessionTemplate
from ...infrastructure.mappers import (
    present,
    swim_item_to_row,
    swim_session_from_row,
    swim_session_to_row,
)
from ...infrastructure.store.base import CollectionStore, Query, by_id
from .base import Service, index_by, utc_now

logger = logging.getLogger(__name__)


class SwimCatalogService(Service):

    def _write_items(self, store: CollectionStore, template: SwimSessionTemplate) -> None:
        rows = []
        for index, item in enumerate(template.items):
            if item.order_index is None:
                item.order_index = index
            row = swim_item_to_row(item, template.id)
            row["id"] = self._next_id()
            item.id = row["id"]
            item.catalog_id = template.id
            rows.append(row)
        store.insert("swim_session_items", rows)

    def get_swim_catalog(self) -> list[SwimSessionTemplate]:
        """Catalog newest first, items ordered by position."""
        store = self._store()
        rows = store.select("swim_sessions_catalog", Query().order_by("created_at", descending=True))
        if not rows:
            return []
        items_by_catalog = index_by(
            store.select("swim_session_items", Query().in_("catalog_id", [row["id"] for row in rows])),
            "catalog_id",
        )
        return present(
            swim_session_from_row(row, items_by_catalog.get(row.get("id"), []))
            for row in rows
        )

    def save_swim_session(self, template: SwimSessionTemplate) -> SwimSessionTemplate:
        """
        Create the template, or replace it when its id already exists.

        Replacing rewrites the whole item list.
        """
        store = self._store()
        now = utc_now()
        existing = store.select("swim_sessions_catalog", by_id(template.id)) if template.id else []

        if existing:
            values = swim_session_to_row(template)
            values["updated_at"] = now
            store.update("swim_sessions_catalog", values, by_id(template.id))
            store.delete("swim_session_items", Query().eq("catalog_id", template.id))
            template.created_at = existing[0].get("created_at")
            template.updated_at = now
            logger.info("Swim session updated", extra={"catalog_id": template.id})
        else:
            if not template.id:
                template.id = self._next_id()
            template.created_at = template.created_at or now
            row = swim_session_to_row(template)
            row.update({"id": template.id, "created_at": template.created_at})
            store.insert("swim_sessions_catalog", [row])
            logger.info("Swim session created", extra={"catalog_id": template.id})

        self._write_items(store, template)
        return template

    def archive_swim_session(self, catalog_id: int, archived: bool = True) -> None:
        self._store().update(
            "swim_sessions_catalog",
            {"is_archived": archived, "updated_at": utc_now()},
            by_id(catalog_id),
        )

    def move_swim_session(self, catalog_id: int, folder: Optional[str]) -> None:
        self._store().update(
            "swim_sessions_catalog",
            {"folder": folder, "updated_at": utc_now()},
            by_id(catalog_id),
        )

    def delete_swim_session(self, catalog_id: int) -> None:
        store = self._store()
        store.delete("swim_session_items", Query().eq("catalog_id", catalog_id))
        store.delete("swim_sessions_catalog", by_id(catalog_id))
