"""
Shared plumbing for the services.

A service holds the DataContext and asks it for a store at the start of
each operation, so every call re-evaluates which backend to use.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from ...infrastructure.functions.client import FunctionsClient
from ...infrastructure.store.base import CollectionStore, Query
from ...infrastructure.store.factory import DataContext


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def athlete_query(athlete_id: Optional[int], athlete_name: Optional[str]) -> Query:
    """Filter by athlete id when known, by display name otherwise."""
    if athlete_id is not None and str(athlete_id) != "":
        return Query().eq("athlete_id", int(athlete_id))
    return Query().eq("athlete_name", athlete_name)


def index_by(rows: Sequence[dict[str, Any]], column: str) -> dict[Any, list[dict[str, Any]]]:
    grouped: dict[Any, list[dict[str, Any]]] = {}
    for row in rows:
        grouped.setdefault(row.get(column), []).append(row)
    return grouped


class Service:
    def __init__(self, context: DataContext, functions: Optional[FunctionsClient] = None) -> None:
        self._context = context
        self._functions = functions

    def _store(self) -> CollectionStore:
        return self._context.store()

    def _next_id(self) -> int:
        return self._context.next_id()
