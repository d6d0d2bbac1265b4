"""Baseline schema: every playerstore table at first release.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-09-14

Builds the prefixed schema from the Alembic main options, so one script
serves every table prefix and skill list. Databases created by
``playerstore init`` are stamped at this revision without running it.
"""

from __future__ import annotations

from alembic import context, op

from playerstore.infrastructure.database.migrations import schema_from_config

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    schema = schema_from_config(context.config)
    schema.metadata.create_all(op.get_bind(), checkfirst=True)


def downgrade() -> None:
    schema = schema_from_config(context.config)
    schema.metadata.drop_all(op.get_bind(), checkfirst=True)
