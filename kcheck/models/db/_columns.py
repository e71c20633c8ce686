"""Shared column helpers for engine tables."""
import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import mapped_column


def new_id() -> str:
    """Generate a primary key."""
    return str(uuid.uuid4())


def id_column():
    """UUID string primary key."""
    return mapped_column(sa.String(36), primary_key=True, default=new_id)


def created_at_column():
    return mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


def updated_at_column():
    return mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
