"""
Infrastructure layer - storage and external service integrations.

- store: CollectionStore contract, Snowflake-backed store, backend selection
- local: JSON mirror used when Snowflake is unavailable
- snowflake: Connection management and driver error translation
- functions: HTTP client for the server-side import and admin functions

schemas and mappers translate between stored rows and our domain models.
"""
