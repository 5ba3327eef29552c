"""
Local persisted mirror used when Snowflake is unavailable.
"""

from .mirror import LocalMirror, storage_key
from .store import LocalMirrorStore

__all__ = ["LocalMirror", "LocalMirrorStore", "storage_key"]
