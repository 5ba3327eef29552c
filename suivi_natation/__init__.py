"""
Suivi Natation - swim and strength training tracker data layer.

This package contains the complete application:
- core: Training domain (models, scales, strength engine, rankings) and services
- infrastructure: Snowflake store, local JSON mirror, row mappers, functions client
- facade: TrainingApi, the single entry point over every operation
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
