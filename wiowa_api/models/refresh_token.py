"""Refresh token persistence model."""
from datetime import datetime, UTC

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from wiowa_api.database import Base
from wiowa_api.models.base import get_uuid_column
from wiowa_api.utils.datetime_helpers import ensure_utc


class RefreshToken(Base):
    """Opaque refresh token; rotation links each revoked token to its replacement."""

    __tablename__ = "refresh_tokens"

    token = Column(String(255), primary_key=True)
    user_id = get_uuid_column(ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_revoked = Column(Boolean, default=False, nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    created_by_ip = Column(String(64), nullable=False)
    revoked_by_ip = Column(String(64), nullable=True)
    replaced_by_token = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True once ``expires_at`` has been reached."""
        current_time = now or datetime.now(UTC)
        expires_at = ensure_utc(self.expires_at)
        if expires_at is None:
            return True
        return current_time >= expires_at

    def is_active(self, now: datetime | None = None) -> bool:
        """Return True if token has not expired or been revoked."""
        return not self.is_revoked and not self.is_expired(now)

    def __repr__(self):
        return (f"<RefreshToken(user_id={self.user_id}, expires_at={self.expires_at}, "
                f"is_revoked={self.is_revoked})>")
