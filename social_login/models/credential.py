"""Credential model."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from social_login.db.base import Base

if TYPE_CHECKING:
    from social_login.models.user import User


class Credential(Base):
    """Link between a local user and one OAuth provider identity."""

    __tablename__ = "credentials"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_credentials_user_provider"),
        UniqueConstraint("uid", "provider", name="uq_credentials_uid_provider"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uid: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    access_token: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )
    # Only Twitter (OAuth 1.0a) issues a token secret
    access_token_secret: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    # Relationships
    user: Mapped[User] = relationship(
        "User",
        back_populates="credentials",
    )

    @property
    def is_expired(self) -> bool:
        """Check if the provider token has expired. No expiry means never."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # SQLite drops tzinfo; values are always stored in UTC
            expires_at = expires_at.replace(tzinfo=UTC)
        return datetime.now(UTC) >= expires_at
