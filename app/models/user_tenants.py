from sqlalchemy import Column, ForeignKey, Integer, Table

from app.database import Base

user_tenants = Table(
    "user_tenants",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("tenant_id", Integer, ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True),
)
