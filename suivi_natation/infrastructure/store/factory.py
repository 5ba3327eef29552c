"""
Backend selection and the per-process data context.

DataContext replaces module-level state: it owns the settings, the network
check, the local mirror, the id generator and the error reporter, and
hands out the right CollectionStore on every call.

The backend decision is made per call and never cached. It only looks at
configuration and the network check; it never opens a connection to find
out whether Snowflake answers.
"""

import logging
import threading
import time
from contextlib import AbstractContextManager
from typing import Callable, Optional, Protocol

from ...config.settings import Settings
from ...core.errors import ErrorReporter
from ..local.mirror import LocalMirror
from ..local.store import LocalMirrorStore
from ..snowflake.client import SnowflakeConfig, SnowflakeConnection, get_snowflake_connection
from .base import TABLES, CollectionStore
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class NetworkCheck(Protocol):
    """Reports whether the runtime believes it has connectivity."""

    def is_online(self) -> bool: ...


class SettingsNetworkCheck:
    """Online unless offline_mode is set. Read on every call."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def is_online(self) -> bool:
        return not self._settings.offline_mode


def can_use_backend(settings: Settings, network: NetworkCheck) -> bool:
    """True iff Snowflake is configured and the network check reports online."""
    return settings.has_backend and network.is_online()


class IdGenerator:
    """
    Millisecond-timestamp ids, strictly increasing within one generator.

    Two ids requested in the same millisecond are bumped apart.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return self._last


class DataContext:
    """
    Everything the data layer needs, with an explicit lifecycle.

    Created per process (FastAPI lifespan) or per session
    (TrainingApi.from_settings) and discarded with close().
    """

    def __init__(
        self,
        settings: Settings,
        network: Optional[NetworkCheck] = None,
        mirror: Optional[LocalMirror] = None,
        connection_factory: Optional[Callable[[], AbstractContextManager[SnowflakeConnection]]] = None,
        ids: Optional[IdGenerator] = None,
        reporter: Optional[ErrorReporter] = None,
    ) -> None:
        self.settings = settings
        self.network = network or SettingsNetworkCheck(settings)
        self.mirror = mirror or LocalMirror(settings.local_data_dir, TABLES)
        self.ids = ids or IdGenerator()
        self.reporter = reporter or ErrorReporter()
        self._connection_factory = connection_factory or self._default_connection_factory
        self._local = LocalMirrorStore(self.mirror, self.ids)
        self._remote = RemoteStore(self._connection_factory, self.reporter)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataContext":
        return cls(settings)

    def _default_connection_factory(self) -> AbstractContextManager[SnowflakeConnection]:
        return get_snowflake_connection(SnowflakeConfig.from_settings(self.settings))

    def can_use_backend(self) -> bool:
        return can_use_backend(self.settings, self.network)

    def store(self) -> CollectionStore:
        """The store for this call: remote when usable, local mirror otherwise."""
        if self.can_use_backend():
            return self._remote
        return self._local

    @property
    def local_store(self) -> LocalMirrorStore:
        return self._local

    @property
    def mode(self) -> str:
        return self.store().mode

    def next_id(self) -> int:
        return self.ids()

    def close(self) -> None:
        self.reporter.reset()
        logger.info("Data context closed")
