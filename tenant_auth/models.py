import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from tenant_auth.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp. All stored datetimes use this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class Tenant(Base):
    """
    Customer organization. Users are attached to one during onboarding.

    cif is the business registration code and must be unique.
    """
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=_new_id)
    cif = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    users = relationship("User", back_populates="tenant")

    def __repr__(self):
        return f"<Tenant(id={self.id}, cif={self.cif})>"


class User(Base):
    """
    Credential record.

    Design notes:
    - email is stored lower-cased; the unique index makes uniqueness
      case-insensitive and is what decides concurrent sign-ups
    - password_hash is nullable; a user without one cannot sign in with a password
    - tenant_id stays null until onboarding assigns a tenant
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)

    tenant_id = Column(String(36), ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="users")
    sessions = relationship(
        "Session",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class Session(Base):
    """
    Server-side session storage.

    Session lifecycle:
    1. Created on sign-in with a random session_token
    2. Validated on each request against expires
    3. Deleted on sign-out, on first lookup after expiry, or by the cleanup sweep
    """
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    session_token = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index("ix_session_lookup", "session_token", "expires"),
    )

    def __repr__(self):
        return f"<Session(id={self.id}, user_id={self.user_id})>"
