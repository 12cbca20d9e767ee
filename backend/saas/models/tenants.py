"""
Host directory models - tenants and their per-purpose connection strings.

These tables live only in the host (tenant-zero) database.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from saas.database.base import Base


class Tenant(Base):
    __tablename__ = "tenant"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    namespace: Mapped[str] = mapped_column(String(255), default="")

    # identity-provider metadata consumed by the token verification layer
    keycloak_client_id: Mapped[Optional[str]] = mapped_column(String(255))
    keycloak_server: Mapped[Optional[str]] = mapped_column(String(512))
    keycloak_jwks_url: Mapped[Optional[str]] = mapped_column(String(512))
    manager_role: Mapped[Optional[str]] = mapped_column(String(255))
    user_role: Mapped[Optional[str]] = mapped_column(String(255))

    conn: Mapped[list[TenantConn]] = relationship(
        back_populates="tenant",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TenantConn(Base):
    __tablename__ = "tenant_conn"

    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenant.id", ondelete="CASCADE"), primary_key=True
    )
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text)

    tenant: Mapped[Tenant] = relationship(back_populates="conn")
