"""
Shared fixtures.

Every test runs in local mode against a fresh mirror under tmp_path unless
it builds its own context. Remote SQL is checked through a recording fake
DB-API connection, never a real Snowflake account.
"""

from contextlib import nullcontext
from typing import Any, Optional

import pytest

from suivi_natation.config.settings import Settings, get_settings
from suivi_natation.core.errors import ApiError
from suivi_natation.facade import TrainingApi
from suivi_natation.infrastructure.store.factory import DataContext


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Local-only settings: no Snowflake, no functions endpoint."""
    return Settings(
        _env_file=None,
        api_keys="test-key",
        snowflake_account="",
        snowflake_user="",
        snowflake_password="",
        snowflake_private_key_path=None,
        functions_base_url="",
        functions_api_key="",
        offline_mode=False,
        local_data_dir=tmp_path / "mirror",
    )


@pytest.fixture
def remote_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        api_keys="test-key",
        snowflake_account="acct-test",
        snowflake_user="svc_user",
        snowflake_password="secret",
        functions_base_url="",
        functions_api_key="",
        offline_mode=False,
        local_data_dir=tmp_path / "mirror",
    )


@pytest.fixture
def context(settings) -> DataContext:
    return DataContext(settings)


@pytest.fixture
def api(context) -> TrainingApi:
    return TrainingApi(context)


@pytest.fixture
def refuse_group_assignment(context, monkeypatch):
    """
    Make the local mirror refuse the assignment row of one group.

    Call the returned function with the group id that should fail.
    """
    def refuse(group_id: int) -> None:
        insert = context.local_store.insert

        def refusing_insert(table, rows):
            if table == "session_assignments" and rows and rows[0].get("target_group_id") == group_id:
                raise ApiError("Insert refused", status=503)
            return insert(table, rows)

        monkeypatch.setattr(context.local_store, "insert", refusing_insert)

    return refuse


# ---------------------------------------------------------------------------
# Fake Snowflake connection
# ---------------------------------------------------------------------------

class FakeCursor:
    def __init__(self, connection: "FakeConnection") -> None:
        self._connection = connection
        self.description = None
        self.rowcount = 0
        self._rows: list[tuple] = []
        self.closed = False

    def execute(self, sql: str, params: tuple = ()) -> None:
        self._connection.statements.append((sql, params))
        if self._connection.error is not None:
            raise self._connection.error
        if self._connection.results:
            description, rows = self._connection.results.pop(0)
        else:
            description, rows = None, []
        self.description = description
        self._rows = rows
        self.rowcount = self._connection.rowcount

    def fetchall(self) -> list[tuple]:
        return self._rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """
    Records every statement.

    results is a queue of (description, rows) pairs served to successive
    execute calls; error, when set, is raised by every execute.
    """

    def __init__(self) -> None:
        self.statements: list[tuple[str, tuple]] = []
        self.results: list[tuple[Any, list[tuple]]] = []
        self.error: Optional[BaseException] = None
        self.rowcount = 1
        self.commits = 0

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        pass


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def remote_context(remote_settings, fake_connection) -> DataContext:
    return DataContext(remote_settings, connection_factory=lambda: nullcontext(fake_connection))
