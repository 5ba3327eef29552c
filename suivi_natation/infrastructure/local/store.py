"""
Collection store over the local JSON mirror.

Implements the same contract as RemoteStore so services are written once.
Queries are evaluated in Python with SQL semantics where they matter:
NULL never satisfies a range comparison, neq lets NULL through, NULL sorts
after every value ascending and before every value descending.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from . import procedures
from .mirror import LocalMirror
from ..store.base import (
    AnyOf,
    Condition,
    Filter,
    Query,
    check_procedure,
    check_table,
    require_filter,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = ("Piscine", "Compétition")


def _compare(left: Any, right: Any) -> Optional[int]:
    if left is None or right is None:
        return None
    try:
        if left < right:
            return -1
        return 1 if left > right else 0
    except TypeError:
        left_text, right_text = str(left), str(right)
        if left_text < right_text:
            return -1
        return 1 if left_text > right_text else 0


def matches_filter(row: dict[str, Any], condition: Filter) -> bool:
    value = row.get(condition.column)
    op = condition.op

    if op == "eq":
        return value == condition.value
    if op == "neq":
        if condition.value is None:
            return value is not None
        return value is None or value != condition.value
    if op == "gte":
        result = _compare(value, condition.value)
        return result is not None and result >= 0
    if op == "lte":
        result = _compare(value, condition.value)
        return result is not None and result <= 0
    if op == "in":
        return value in (condition.value or ())
    if op == "is_null":
        return value is None
    return value is not None


def matches(row: dict[str, Any], condition: Condition) -> bool:
    if isinstance(condition, AnyOf):
        return any(matches_filter(row, item) for item in condition.filters)
    return matches_filter(row, condition)


def apply_query(rows: list[dict[str, Any]], query: Query) -> list[dict[str, Any]]:
    selected = [row for row in rows if all(matches(row, c) for c in query.conditions)]

    # Stable multi-key sort: apply the least significant key first
    for column, descending in reversed(query.ordering):
        present = [row for row in selected if row.get(column) is not None]
        missing = [row for row in selected if row.get(column) is None]
        try:
            present.sort(key=lambda row: row[column], reverse=descending)
        except TypeError:
            present.sort(key=lambda row: str(row[column]), reverse=descending)
        selected = missing + present if descending else present + missing

    end = None if query.limit is None else query.offset + query.limit
    return selected[query.offset:end]


class LocalMirrorStore:
    """
    CollectionStore backed by LocalMirror.

    Every mutation is a read-modify-write of the whole collection.
    """

    mode = "local"

    def __init__(self, mirror: LocalMirror, next_id: Callable[[], int]) -> None:
        self._mirror = mirror
        self._next_id = next_id

    @property
    def mirror(self) -> LocalMirror:
        return self._mirror

    def _load(self, table: str) -> list[dict[str, Any]]:
        rows = self._mirror.collection(table).get() or []
        if table == "timesheet_locations" and not rows:
            rows = self._seed_locations()
        return rows

    def _save(self, table: str, rows: list[dict[str, Any]]) -> None:
        self._mirror.collection(table).save(rows)

    def _seed_locations(self) -> list[dict[str, Any]]:
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            {"id": self._next_id(), "name": name, "created_at": now, "updated_at": now}
            for name in DEFAULT_LOCATIONS
        ]
        self._save("timesheet_locations", rows)
        return rows

    def select(self, table: str, query: Optional[Query] = None) -> list[dict[str, Any]]:
        check_table(table)
        return copy.deepcopy(apply_query(self._load(table), query or Query()))

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> None:
        check_table(table)
        if not rows:
            return
        existing = self._load(table)
        for row in rows:
            new_row = copy.deepcopy(dict(row))
            if new_row.get("id") is None:
                new_row["id"] = self._next_id()
            existing.append(new_row)
        self._save(table, existing)

    def update(self, table: str, values: dict[str, Any], query: Query) -> int:
        check_table(table)
        require_filter("update", table, query)
        rows = self._load(table)
        count = 0
        for row in rows:
            if all(matches(row, condition) for condition in query.conditions):
                row.update(copy.deepcopy(values))
                count += 1
        if count:
            self._save(table, rows)
        return count

    def delete(self, table: str, query: Query) -> int:
        check_table(table)
        require_filter("delete", table, query)
        rows = self._load(table)
        kept = [row for row in rows if not all(matches(row, c) for c in query.conditions)]
        removed = len(rows) - len(kept)
        if removed:
            self._save(table, kept)
        return removed

    def upsert(self, table: str, rows: Sequence[dict[str, Any]], on_conflict: Sequence[str]) -> None:
        check_table(table)
        if not rows:
            return
        if not on_conflict:
            raise ValueError(f"Upsert on {table} needs conflict columns")
        existing = self._load(table)
        for row in rows:
            target = next(
                (
                    current for current in existing
                    if all(current.get(key) == row.get(key) for key in on_conflict)
                ),
                None,
            )
            values = copy.deepcopy(dict(row))
            if target is not None:
                values.pop("id", None)
                target.update(values)
                continue
            if values.get("id") is None:
                values["id"] = self._next_id()
            existing.append(values)
        self._save(table, existing)

    def call(self, procedure: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        check_procedure(procedure)
        handler = getattr(procedures, procedure)
        return handler(self, **(params or {}))

    def reset(self) -> None:
        self._mirror.reset_all()
