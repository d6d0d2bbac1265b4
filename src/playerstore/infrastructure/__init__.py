"""Infrastructure layer: database engine, schema, item registry, repositories.

This layer depends on the domain models and third-party libs (SQLAlchemy,
Alembic). It must never import from services, commands, or output.
"""
