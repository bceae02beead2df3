"""Utility functions for Alembic migrations."""
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from alembic import op


def get_uuid_type():
    """Get the UUID column type for the current database dialect.

    PostgreSQL gets its native UUID type; SQLite and others get String(36),
    matching how ``AdaptiveUUID`` stores values.
    """
    if op.get_bind().dialect.name == 'postgresql':
        return UUID(as_uuid=True)
    return sa.String(length=36)


def active_round_predicate():
    """Partial index predicate selecting the active round, per dialect."""
    if op.get_bind().dialect.name == 'postgresql':
        return {'postgresql_where': sa.text('is_active')}
    return {'sqlite_where': sa.text('is_active = 1')}
