"""User models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from social_login.db.base import Base

if TYPE_CHECKING:
    from social_login.models.credential import Credential


class User(Base):
    """Local account that OAuth identities are reconciled into."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    login: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    # Placeholder for OAuth-created accounts; never chosen by the user here
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    username: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Social network profile URLs
    gp_addr: Mapped[str | None] = mapped_column(String(500), nullable=True)
    fb_addr: Mapped[str | None] = mapped_column(String(500), nullable=True)
    vk_addr: Mapped[str | None] = mapped_column(String(500), nullable=True)
    tw_addr: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ok_addr: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    credentials: Mapped[list[Credential]] = relationship(
        "Credential",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Raw OAuth payload for the current sign-in attempt. Not persisted.
    oauth_data = None

    @property
    def is_oauth(self) -> bool:
        """Whether a raw OAuth payload is waiting to be reconciled."""
        return bool(self.oauth_data)

    def attach_oauth_data(self, raw: str | bytes | dict[str, Any]) -> None:
        """Attach a raw payload so the next reconciliation picks it up."""
        self.oauth_data = raw

    def reset_oauth_data(self) -> None:
        self.oauth_data = None
