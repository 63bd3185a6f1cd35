"""Mixins for SQLAlchemy models."""

import uuid

from sqlalchemy import Column, DateTime, String, func


def new_uuid() -> str:
    """Generate a string UUID primary key."""
    return str(uuid.uuid4())


class UUIDPrimaryKeyMixin:
    """Mixin to add a string UUID primary key."""

    id = Column(String(36), primary_key=True, default=new_uuid)


class TimestampMixin:
    """Mixin to add a created_at timestamp column."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
