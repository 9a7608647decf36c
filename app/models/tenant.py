"""
Tenant model.

Each Tenant is an isolated workspace reachable at <slug>.<base_domain>
or at its own custom domain.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.user_tenants import user_tenants


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(50), nullable=False, unique=True, index=True)  # URL-safe, e.g. "acme"
    custom_domain = Column(String(253), nullable=True, unique=True)  # optional, e.g. "app.acme.com"
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    users = relationship("User", secondary=user_tenants, back_populates="tenants")

    __table_args__ = (Index("idx_tenant_custom_domain", "custom_domain"),)
