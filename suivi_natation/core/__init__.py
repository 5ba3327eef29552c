"""
Core business logic for swim and strength training.

training/ is framework-agnostic: it doesn't import FastAPI, Snowflake,
or any storage concern. services/ runs use cases against a CollectionStore
without knowing which backend answers.
"""
