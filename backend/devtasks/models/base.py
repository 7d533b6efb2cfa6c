"""
Shared column helpers for the DevTasks models.

Identifiers are 24-character lowercase hex strings (12 random bytes), the
opaque format the API validates on every path parameter.
"""

import secrets
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, text
from sqlalchemy.orm import Mapped, mapped_column

OBJECT_ID_LENGTH = 24


def new_object_id() -> str:
    return secrets.token_hex(OBJECT_ID_LENGTH // 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ObjectIdColumn(*args, **kwargs):
    """String(24) column; primary keys get a generated default."""
    if kwargs.get("primary_key"):
        kwargs.setdefault("default", new_object_id)
    return mapped_column(String(OBJECT_ID_LENGTH), *args, **kwargs)


class TimestampMixin:
    """created_at / updated_at, stored in UTC."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
