"""
Declarative base for the host directory ORM models.

Only the tenant directory (``tenant``, ``tenant_conn``) is mapped through the
ORM. Application tables are plain Core ``Table`` objects applied by the
versioned migration list, so nothing here is used to create schema.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import TIMESTAMP, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """
    Directory model base with server-side audit timestamps.

    Attributes:
        created_at (Mapped[datetime]): Set by the server on insert.
        updated_at (Mapped[datetime]): Set on insert, refreshed on every ORM update.

    The table name defaults to the lower-cased class name.
    """

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()
