"""
Unit tests for backend selection and id generation.
"""

from contextlib import nullcontext

from suivi_natation.infrastructure.store.factory import (
    DataContext,
    IdGenerator,
    SettingsNetworkCheck,
    can_use_backend,
)


class StaticNetwork:
    def __init__(self, online: bool) -> None:
        self.online = online

    def is_online(self) -> bool:
        return self.online


# ---------------------------------------------------------------------------
# can_use_backend
# ---------------------------------------------------------------------------

class TestCanUseBackend:
    """Remote only when configured AND online."""

    def test_unconfigured_is_local(self, settings):
        assert can_use_backend(settings, StaticNetwork(True)) is False

    def test_configured_and_online_is_remote(self, remote_settings):
        assert can_use_backend(remote_settings, StaticNetwork(True)) is True

    def test_configured_but_offline_is_local(self, remote_settings):
        assert can_use_backend(remote_settings, StaticNetwork(False)) is False

    def test_password_or_key_is_required(self, remote_settings):
        remote_settings.snowflake_password = ""

        assert remote_settings.has_backend is False

        remote_settings.snowflake_private_key_path = "/keys/rsa_key.p8"

        assert remote_settings.has_backend is True

    def test_offline_mode_drives_the_default_check(self, remote_settings):
        network = SettingsNetworkCheck(remote_settings)
        remote_settings.offline_mode = True

        assert network.is_online() is False


class TestDataContextSelection:
    """The decision is re-made on every call."""

    def test_mode_follows_connectivity(self, remote_settings, fake_connection):
        network = StaticNetwork(True)
        context = DataContext(
            remote_settings,
            network=network,
            connection_factory=lambda: nullcontext(fake_connection),
        )

        assert context.mode == "remote"

        network.online = False

        assert context.mode == "local"

    def test_local_context_never_opens_a_connection(self, settings):
        def explode():
            raise AssertionError("no connection expected in local mode")

        context = DataContext(settings, connection_factory=explode)
        context.store().insert("groups", [{"name": "Elite"}])

        assert context.mode == "local"
        assert len(context.store().select("groups")) == 1


# ---------------------------------------------------------------------------
# IdGenerator
# ---------------------------------------------------------------------------

class TestIdGenerator:

    def test_ids_are_milliseconds(self):
        ids = IdGenerator(clock=lambda: 1700000000.123)

        assert ids() == 1700000000123

    def test_same_millisecond_ids_are_bumped(self):
        ids = IdGenerator(clock=lambda: 1700000000.0)

        assert [ids(), ids(), ids()] == [1700000000000, 1700000000001, 1700000000002]

    def test_clock_going_backwards_still_increases(self):
        ticks = iter([2.0, 1.0])
        ids = IdGenerator(clock=lambda: next(ticks))

        first, second = ids(), ids()

        assert second > first
