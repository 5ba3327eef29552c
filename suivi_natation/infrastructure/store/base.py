"""
Collection store contract shared by the remote and local backends.

Services talk to a CollectionStore and never know which backend answers.
Both backends hold the same row shapes (the Snowflake column layout).
Session ratings are the one difference: the local mirror keeps them on
the 1-5 scale, the database on the 1-10 scale; session_from_row reads both.

Queries are plain data (Query, Filter, AnyOf). The remote store renders
them as parameterized SQL; the local store evaluates them in Python.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol, Sequence, Union

logger = logging.getLogger(__name__)

TABLES = frozenset({
    "sessions",
    "exercises",
    "strength_sessions",
    "strength_session_items",
    "strength_session_runs",
    "strength_set_logs",
    "swim_sessions_catalog",
    "swim_session_items",
    "session_assignments",
    "notifications",
    "notification_targets",
    "one_rm_records",
    "club_records",
    "club_record_swimmers",
    "swim_records",
    "swimmer_performances",
    "import_logs",
    "swim_exercise_logs",
    "timesheet_shifts",
    "timesheet_locations",
    "users",
    "groups",
    "group_members",
    "user_profiles",
    "app_settings",
})

# VARIANT columns: written with PARSE_JSON, parsed back on read.
JSON_COLUMNS: dict[str, frozenset[str]] = {
    "swim_session_items": frozenset({"raw_payload"}),
    "strength_session_runs": frozenset({"raw_payload"}),
    "swim_exercise_logs": frozenset({"split_times", "stroke_count"}),
    "app_settings": frozenset({"value"}),
    "import_logs": frozenset({"details"}),
}

PROCEDURES = frozenset({
    "get_hall_of_fame",
    "get_upcoming_birthdays",
    "get_strength_history_aggregate",
})

OPERATORS = frozenset({"eq", "neq", "gte", "lte", "in", "is_null", "not_null"})

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class UnknownCollectionError(ValueError):
    """Raised for a table, column or procedure name outside the known set."""
    pass


def check_table(table: str) -> str:
    if table not in TABLES:
        raise UnknownCollectionError(f"Unknown collection: {table}")
    return table


def check_column(column: str) -> str:
    if not _IDENTIFIER.match(column):
        raise UnknownCollectionError(f"Invalid column name: {column!r}")
    return column


def check_procedure(procedure: str) -> str:
    if procedure not in PROCEDURES:
        raise UnknownCollectionError(f"Unknown procedure: {procedure}")
    return procedure


def parse_variant_json(variant_data: Any) -> Any:
    """
    Parse Snowflake VARIANT data that might be a string or already parsed.

    snowflake-connector-python returns VARIANT as a JSON string, the local
    mirror returns the decoded value. Unparseable strings come back as None.
    """
    if variant_data is None or variant_data == "":
        return None

    if isinstance(variant_data, str):
        try:
            return json.loads(variant_data)
        except json.JSONDecodeError as e:
            logger.error(
                "Failed to parse VARIANT JSON",
                extra={"error": str(e), "data_preview": variant_data[:100]}
            )
            return None

    return variant_data


# ---------------------------------------------------------------------------
# Query model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any = None

    def __post_init__(self) -> None:
        check_column(self.column)
        if self.op not in OPERATORS:
            raise ValueError(f"Unknown filter operator: {self.op}")


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of filters. An empty AnyOf matches nothing."""
    filters: tuple[Filter, ...]


Condition = Union[Filter, AnyOf]


@dataclass
class Query:
    """
    Filters (ANDed), ordering and paging for one collection read or write.

    Builder methods return self so queries read left to right:
        Query().eq("athlete_id", 4).order_by("session_date", descending=True)
    """
    conditions: list[Condition] = field(default_factory=list)
    ordering: list[tuple[str, bool]] = field(default_factory=list)
    limit: Optional[int] = None
    offset: int = 0

    def where(self, condition: Condition) -> "Query":
        self.conditions.append(condition)
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self.where(Filter(column, "eq", value))

    def neq(self, column: str, value: Any) -> "Query":
        return self.where(Filter(column, "neq", value))

    def gte(self, column: str, value: Any) -> "Query":
        return self.where(Filter(column, "gte", value))

    def lte(self, column: str, value: Any) -> "Query":
        return self.where(Filter(column, "lte", value))

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        return self.where(Filter(column, "in", tuple(values)))

    def is_null(self, column: str) -> "Query":
        return self.where(Filter(column, "is_null"))

    def not_null(self, column: str) -> "Query":
        return self.where(Filter(column, "not_null"))

    def any_of(self, *filters: Filter) -> "Query":
        return self.where(AnyOf(tuple(filters)))

    def order_by(self, column: str, descending: bool = False) -> "Query":
        self.ordering.append((check_column(column), descending))
        return self

    def page(self, limit: Optional[int], offset: int = 0) -> "Query":
        self.limit = limit
        self.offset = max(offset, 0)
        return self

    @property
    def is_unfiltered(self) -> bool:
        return not self.conditions


def by_id(record_id: Any) -> Query:
    return Query().eq("id", record_id)


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------

class CollectionStore(Protocol):
    """
    Protocol for collection CRUD, implemented by RemoteStore and LocalMirrorStore.

    update and delete refuse an unfiltered query: wiping a whole
    collection is never what a data-layer call means.
    """

    mode: str

    def select(self, table: str, query: Optional[Query] = None) -> list[dict[str, Any]]: ...

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> None: ...

    def update(self, table: str, values: dict[str, Any], query: Query) -> int: ...

    def delete(self, table: str, query: Query) -> int: ...

    def upsert(self, table: str, rows: Sequence[dict[str, Any]], on_conflict: Sequence[str]) -> None: ...

    def call(self, procedure: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]: ...


def require_filter(operation: str, table: str, query: Query) -> None:
    if query.is_unfiltered:
        raise ValueError(f"Refusing unfiltered {operation} on {table}")
