"""
Unit tests for the Snowflake-backed store.

SQL rendering is checked as text; execution goes through the recording
FakeConnection from conftest, so no driver is involved.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from suivi_natation.core.errors import TABLE_MISSING_MESSAGE, UNAUTHENTICATED_MESSAGE, ApiError
from suivi_natation.infrastructure.snowflake.client import (
    SnowflakeConnectionError,
    translate_snowflake_error,
)
from suivi_natation.infrastructure.store.base import Filter, Query, by_id
from suivi_natation.infrastructure.store.remote import (
    decode_rows,
    render_call,
    render_insert,
    render_merge,
    render_select,
    render_update,
)


class DriverError(Exception):
    """Shaped like snowflake.connector.errors.ProgrammingError."""

    def __init__(self, msg: str, errno: int) -> None:
        super().__init__(msg)
        self.msg = msg
        self.errno = errno


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRenderSelect:
    """Query -> parameterized SELECT."""

    def test_filters_order_and_paging(self):
        query = Query().eq("athlete_id", 4).order_by("session_date", descending=True).page(20, 40)

        sql, params = render_select("sessions", query)

        assert sql == (
            "SELECT * FROM sessions WHERE athlete_id = %s "
            "ORDER BY session_date DESC LIMIT %s OFFSET %s"
        )
        assert params == [4, 20, 40]

    def test_unfiltered_select(self):
        assert render_select("groups", Query()) == ("SELECT * FROM groups", [])

    def test_eq_none_is_null_check(self):
        sql, params = render_select("sessions", Query().eq("athlete_id", None))

        assert sql == "SELECT * FROM sessions WHERE athlete_id IS NULL"
        assert params == []

    def test_neq_keeps_null_rows(self):
        sql, params = render_select("sessions", Query().neq("slot", "Matin"))

        assert sql == "SELECT * FROM sessions WHERE (slot <> %s OR slot IS NULL)"
        assert params == ["Matin"]

    def test_empty_in_matches_nothing(self):
        sql, _ = render_select("sessions", Query().in_("id", []))

        assert sql == "SELECT * FROM sessions WHERE 1 = 0"

    def test_in_list(self):
        sql, params = render_select("sessions", Query().in_("id", [1, 2]))

        assert sql == "SELECT * FROM sessions WHERE id IN (%s, %s)"
        assert params == [1, 2]

    def test_any_of_is_parenthesized(self):
        query = Query().any_of(Filter("target_user_id", "eq", 3), Filter("target_group_id", "in", (7,)))

        sql, params = render_select("notification_targets", query)

        assert sql == (
            "SELECT * FROM notification_targets "
            "WHERE (target_user_id = %s OR target_group_id IN (%s))"
        )
        assert params == [3, 7]


class TestRenderWrites:
    """INSERT, UPDATE, MERGE and CALL."""

    def test_insert_plain_values(self):
        sql, params = render_insert("groups", {"id": 1, "name": "Elite"})

        assert sql == "INSERT INTO groups (id, name) SELECT %s, %s"
        assert params == [1, "Elite"]

    def test_insert_json_column_goes_through_parse_json(self):
        sql, params = render_insert("app_settings", {"key": "theme", "value": {"dark": True}})

        assert sql == "INSERT INTO app_settings (key, value) SELECT %s, PARSE_JSON(%s)"
        assert params == ["theme", '{"dark": true}']

    def test_update(self):
        sql, params = render_update("groups", {"name": "Z"}, by_id(2))

        assert sql == "UPDATE groups SET name = %s WHERE id = %s"
        assert params == ["Z", 2]

    def test_merge_matches_with_equal_null_and_keeps_id(self):
        sql, params = render_merge("one_rm_records", {"id": 9, "athlete_id": 3, "exercise_id": 5, "one_rm": 100}, ["athlete_id", "exercise_id"])

        assert "EQUAL_NULL(target.athlete_id, source.athlete_id)" in sql
        assert "WHEN MATCHED THEN UPDATE SET one_rm = %s" in sql
        assert "id = %s" not in sql.split("WHEN NOT MATCHED")[0]
        assert params[:3] == [3, 5, 100]

    def test_call_uses_named_arguments(self):
        sql, params = render_call("get_upcoming_birthdays", {"p_days": 30})

        assert sql == "CALL get_upcoming_birthdays(p_days => %s)"
        assert params == [30]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class TestDecodeRows:
    """Driver tuples -> mirror-shaped dicts."""

    def test_names_are_lowercased_and_values_plain(self):
        description = [("ID",), ("ONE_RM",), ("RECORDED_AT",), ("SESSION_DATE",)]
        rows = [(Decimal("4"), Decimal("102.5"), datetime(2024, 1, 2, 10, 0), date(2024, 1, 2))]

        decoded = decode_rows("one_rm_records", description, rows)

        assert decoded == [{
            "id": 4,
            "one_rm": 102.5,
            "recorded_at": "2024-01-02T10:00:00",
            "session_date": "2024-01-02",
        }]

    def test_variant_columns_are_parsed(self):
        decoded = decode_rows("app_settings", [("KEY",), ("VALUE",)], [("theme", '{"dark": true}')])

        assert decoded[0]["value"] == {"dark": True}


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

class TestTranslateSnowflakeError:

    def test_missing_table(self):
        error = translate_snowflake_error(DriverError("Object does not exist", 2003))

        assert (error.code, error.status) == ("table_missing", 404)

    def test_auth_failure(self):
        error = translate_snowflake_error(DriverError("expired", 390318))

        assert (error.code, error.status) == ("auth_failed", 401)

    def test_insufficient_privileges(self):
        assert translate_snowflake_error(DriverError("nope", 3001)).status == 403

    def test_connection_failure(self):
        error = translate_snowflake_error(SnowflakeConnectionError("down"))

        assert (error.code, error.status) == ("connection_failed", 503)

    def test_api_error_passes_through(self):
        original = ApiError("x", code="y", status=400)

        assert translate_snowflake_error(original) is original


# ---------------------------------------------------------------------------
# RemoteStore execution
# ---------------------------------------------------------------------------

class TestRemoteStore:
    """Statements reach the cursor and failures become ApiError."""

    def test_context_uses_remote_store(self, remote_context):
        assert remote_context.mode == "remote"

    def test_select_decodes_rows(self, remote_context, fake_connection):
        fake_connection.results.append(([("ID",), ("NAME",)], [(1, "Elite")]))

        rows = remote_context.store().select("groups", by_id(1))

        assert rows == [{"id": 1, "name": "Elite"}]
        assert fake_connection.statements == [("SELECT * FROM groups WHERE id = %s", (1,))]
        assert fake_connection.commits == 0

    def test_writes_commit(self, remote_context, fake_connection):
        remote_context.store().insert("groups", [{"id": 1, "name": "Elite"}])

        assert fake_connection.commits == 1

    def test_update_returns_rowcount(self, remote_context, fake_connection):
        fake_connection.rowcount = 3

        assert remote_context.store().update("groups", {"name": "Z"}, Query().gte("id", 1)) == 3

    def test_unfiltered_delete_never_reaches_the_database(self, remote_context, fake_connection):
        with pytest.raises(ValueError):
            remote_context.store().delete("groups", Query())

        assert fake_connection.statements == []

    def test_driver_error_becomes_summarized_api_error(self, remote_context, fake_connection):
        fake_connection.error = DriverError("Table 'GROUPS' does not exist", 2003)

        with pytest.raises(ApiError) as exc_info:
            remote_context.store().select("groups")

        assert exc_info.value.code == "table_missing"
        assert exc_info.value.message == TABLE_MISSING_MESSAGE

    def test_auth_error_message(self, remote_context, fake_connection):
        fake_connection.error = DriverError("token expired", 390318)

        with pytest.raises(ApiError) as exc_info:
            remote_context.store().select("groups")

        assert exc_info.value.message == UNAUTHENTICATED_MESSAGE

    def test_repeated_failure_is_logged_once(self, remote_context, fake_connection, caplog):
        fake_connection.error = DriverError("Table 'GROUPS' does not exist", 2003)

        with caplog.at_level(logging.ERROR, logger="suivi_natation.core.errors"):
            for _ in range(3):
                with pytest.raises(ApiError):
                    remote_context.store().select("groups")

        failures = [r for r in caplog.records if r.getMessage() == "Remote operation failed"]
        assert len(failures) == 1
