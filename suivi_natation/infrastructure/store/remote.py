"""
Snowflake-backed collection store.

Renders Query objects as parameterized SQL. Every operation opens its own
connection through the connection factory, runs on one cursor, commits
writes and closes everything on the way out.

Rows come back keyed by lowercase column name with VARIANT columns already
parsed, dates as ISO strings and NUMBER values as int or float, which is
the same shape the local mirror stores.
"""

import json
import logging
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from ...core.errors import ErrorReporter
from ..snowflake.client import SnowflakeConnection, translate_snowflake_error
from .base import (
    JSON_COLUMNS,
    AnyOf,
    Condition,
    Filter,
    Query,
    check_column,
    check_procedure,
    check_table,
    parse_variant_json,
    require_filter,
)

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], AbstractContextManager[SnowflakeConnection]]


# ---------------------------------------------------------------------------
# SQL rendering
# ---------------------------------------------------------------------------

def _is_json(table: str, column: str, value: Any) -> bool:
    return column in JSON_COLUMNS.get(table, ()) or isinstance(value, (dict, list))


def _placeholder(table: str, column: str, value: Any) -> str:
    return "PARSE_JSON(%s)" if _is_json(table, column, value) else "%s"


def _param(table: str, column: str, value: Any) -> Any:
    if value is not None and _is_json(table, column, value):
        return json.dumps(value)
    return value


def render_filter(condition: Filter, params: list[Any]) -> str:
    column = condition.column
    op = condition.op

    if op == "eq":
        if condition.value is None:
            return f"{column} IS NULL"
        params.append(condition.value)
        return f"{column} = %s"
    if op == "neq":
        if condition.value is None:
            return f"{column} IS NOT NULL"
        params.append(condition.value)
        return f"({column} <> %s OR {column} IS NULL)"
    if op == "gte":
        params.append(condition.value)
        return f"{column} >= %s"
    if op == "lte":
        params.append(condition.value)
        return f"{column} <= %s"
    if op == "in":
        values = list(condition.value or ())
        if not values:
            return "1 = 0"
        params.extend(values)
        return f"{column} IN ({', '.join(['%s'] * len(values))})"
    if op == "is_null":
        return f"{column} IS NULL"
    return f"{column} IS NOT NULL"


def render_condition(condition: Condition, params: list[Any]) -> str:
    if isinstance(condition, AnyOf):
        if not condition.filters:
            return "1 = 0"
        parts = [render_filter(item, params) for item in condition.filters]
        return "(" + " OR ".join(parts) + ")"
    return render_filter(condition, params)


def render_where(query: Query, params: list[Any]) -> str:
    if query.is_unfiltered:
        return ""
    clauses = [render_condition(condition, params) for condition in query.conditions]
    return " WHERE " + " AND ".join(clauses)


def render_select(table: str, query: Query) -> tuple[str, list[Any]]:
    params: list[Any] = []
    sql = f"SELECT * FROM {table}" + render_where(query, params)

    if query.ordering:
        order = ", ".join(
            f"{column} DESC" if descending else column
            for column, descending in query.ordering
        )
        sql += f" ORDER BY {order}"

    if query.limit is not None:
        sql += " LIMIT %s OFFSET %s"
        params.extend([query.limit, query.offset])
    elif query.offset:
        sql += " LIMIT NULL OFFSET %s"
        params.append(query.offset)

    return sql, params


def render_insert(table: str, row: dict[str, Any]) -> tuple[str, list[Any]]:
    # INSERT ... SELECT so PARSE_JSON is allowed in the projection
    columns = [check_column(column) for column in row]
    placeholders = [_placeholder(table, column, row[column]) for column in columns]
    params = [_param(table, column, row[column]) for column in columns]
    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"SELECT {', '.join(placeholders)}"
    )
    return sql, params


def render_update(table: str, values: dict[str, Any], query: Query) -> tuple[str, list[Any]]:
    assignments = []
    params: list[Any] = []
    for column, value in values.items():
        check_column(column)
        assignments.append(f"{column} = {_placeholder(table, column, value)}")
        params.append(_param(table, column, value))
    sql = f"UPDATE {table} SET {', '.join(assignments)}" + render_where(query, params)
    return sql, params


def render_delete(table: str, query: Query) -> tuple[str, list[Any]]:
    params: list[Any] = []
    sql = f"DELETE FROM {table}" + render_where(query, params)
    return sql, params


def render_merge(
    table: str,
    row: dict[str, Any],
    on_conflict: Sequence[str],
) -> tuple[str, list[Any]]:
    """
    MERGE one row on its conflict columns.

    Keys are compared with EQUAL_NULL so a NULL key matches a NULL key.
    The id of an existing row is never overwritten.
    """
    keys = [check_column(column) for column in on_conflict]
    columns = [check_column(column) for column in row]
    updated = [column for column in columns if column not in keys and column != "id"]

    params: list[Any] = [row.get(key) for key in keys]
    source = ", ".join(f"%s AS {key}" for key in keys)
    match = " AND ".join(f"EQUAL_NULL(target.{key}, source.{key})" for key in keys)

    sql = (
        f"MERGE INTO {table} AS target "
        f"USING (SELECT {source}) AS source "
        f"ON {match}"
    )
    if updated:
        sets = ", ".join(
            f"{column} = {_placeholder(table, column, row[column])}" for column in updated
        )
        sql += f" WHEN MATCHED THEN UPDATE SET {sets}"
        params.extend(_param(table, column, row[column]) for column in updated)

    values = ", ".join(_placeholder(table, column, row[column]) for column in columns)
    sql += f" WHEN NOT MATCHED THEN INSERT ({', '.join(columns)}) VALUES ({values})"
    params.extend(_param(table, column, row[column]) for column in columns)
    return sql, params


def render_call(procedure: str, params: Optional[dict[str, Any]]) -> tuple[str, list[Any]]:
    arguments = [(check_column(name), value) for name, value in (params or {}).items()]
    rendered = ", ".join(f"{name} => %s" for name, _ in arguments)
    return f"CALL {procedure}({rendered})", [value for _, value in arguments]


# ---------------------------------------------------------------------------
# Row decoding
# ---------------------------------------------------------------------------

def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def decode_rows(table: Optional[str], description: Any, rows: Sequence[Sequence[Any]]) -> list[dict[str, Any]]:
    names = [column[0].lower() for column in (description or [])]
    json_columns = JSON_COLUMNS.get(table or "", frozenset())
    decoded = []
    for raw in rows:
        row = {}
        for name, value in zip(names, raw):
            row[name] = parse_variant_json(value) if name in json_columns else _plain(value)
        decoded.append(row)
    return decoded


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class RemoteStore:
    """
    CollectionStore over Snowflake.

    Driver failures are translated into ApiError, reported once through
    the context's ErrorReporter and re-raised.
    """

    mode = "remote"

    def __init__(self, connection_factory: ConnectionFactory, reporter: ErrorReporter) -> None:
        self._connection_factory = connection_factory
        self._reporter = reporter

    def _execute(
        self,
        statements: Sequence[tuple[str, list[Any]]],
        commit: bool,
        table: Optional[str] = None,
        fetch: bool = False,
    ) -> Any:
        try:
            with self._connection_factory() as conn:
                cursor = conn.cursor()
                try:
                    affected = 0
                    rows: list[dict[str, Any]] = []
                    for sql, params in statements:
                        cursor.execute(sql, tuple(params))
                        if fetch:
                            rows = decode_rows(table, cursor.description, cursor.fetchall())
                        else:
                            affected += max(cursor.rowcount or 0, 0)
                    if commit:
                        conn.commit()
                    return rows if fetch else affected
                finally:
                    cursor.close()
        except Exception as exc:
            raise self._reporter.report(translate_snowflake_error(exc)) from exc

    def select(self, table: str, query: Optional[Query] = None) -> list[dict[str, Any]]:
        check_table(table)
        statement = render_select(table, query or Query())
        return self._execute([statement], commit=False, table=table, fetch=True)

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> None:
        check_table(table)
        if not rows:
            return
        self._execute([render_insert(table, row) for row in rows], commit=True)
        logger.debug("Inserted rows", extra={"table": table, "count": len(rows)})

    def update(self, table: str, values: dict[str, Any], query: Query) -> int:
        check_table(table)
        require_filter("update", table, query)
        if not values:
            return 0
        return self._execute([render_update(table, values, query)], commit=True)

    def delete(self, table: str, query: Query) -> int:
        check_table(table)
        require_filter("delete", table, query)
        return self._execute([render_delete(table, query)], commit=True)

    def upsert(self, table: str, rows: Sequence[dict[str, Any]], on_conflict: Sequence[str]) -> None:
        check_table(table)
        if not rows:
            return
        if not on_conflict:
            raise ValueError(f"Upsert on {table} needs conflict columns")
        self._execute([render_merge(table, row, on_conflict) for row in rows], commit=True)

    def call(self, procedure: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        check_procedure(procedure)
        return self._execute([render_call(procedure, params)], commit=False, fetch=True)
