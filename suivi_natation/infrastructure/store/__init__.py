"""
Collection stores: the shared contract, the Snowflake store and the
backend selector.
"""

from .base import AnyOf, CollectionStore, Filter, Query, by_id

__all__ = ["AnyOf", "CollectionStore", "Filter", "Query", "by_id"]
