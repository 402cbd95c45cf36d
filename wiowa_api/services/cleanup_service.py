"""Cleanup service for database maintenance tasks."""
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from wiowa_api.config import get_settings
from wiowa_api.models.refresh_token import RefreshToken
from wiowa_api.models.user import User

logger = logging.getLogger(__name__)


class CleanupService:
    """Service for periodic database cleanup tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    @staticmethod
    def _normalize_rowcount(rowcount: int | None) -> int:
        """Return a non-negative rowcount value.

        SQLite (and some drivers) may return -1 when the exact number of rows
        affected is unknown.
        """

        if not rowcount or rowcount < 0:
            return 0
        return rowcount

    async def cleanup_orphaned_refresh_tokens(self) -> int:
        """
        Remove refresh tokens that reference non-existent users.

        SQLite does not enforce foreign keys unless asked to, so rows can
        outlive their user.

        Returns:
            Number of orphaned tokens deleted
        """
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id.not_in(select(User.user_id)))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        deleted_count = self._normalize_rowcount(result.rowcount)
        if deleted_count > 0:
            logger.warning(f"Cleaned up {deleted_count} orphaned refresh tokens")
        else:
            logger.info("No orphaned refresh tokens found")

        return deleted_count

    async def cleanup_expired_refresh_tokens(self) -> int:
        """
        Remove expired refresh tokens that were never revoked.

        Revoked tokens are kept for the retention window so that replaying
        them still trips reuse detection.

        Returns:
            Number of expired tokens deleted
        """
        now = datetime.now(UTC)

        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .where(RefreshToken.is_revoked.is_(False))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        deleted_count = self._normalize_rowcount(result.rowcount)
        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} expired refresh tokens")
        else:
            logger.info("No expired refresh tokens found")

        return deleted_count

    async def cleanup_old_revoked_tokens(self, days_old: int | None = None) -> int:
        """
        Remove expired revoked tokens revoked more than ``days_old`` days ago.

        Args:
            days_old: Retention window, defaults to ``REVOKED_TOKEN_RETENTION_DAYS``

        Returns:
            Number of old revoked tokens deleted
        """
        if days_old is None:
            days_old = self.settings.revoked_token_retention_days
        now = datetime.now(UTC)
        cutoff_date = now - timedelta(days=days_old)

        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.is_revoked.is_(True))
            .where(RefreshToken.revoked_at < cutoff_date)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        deleted_count = self._normalize_rowcount(result.rowcount)
        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} revoked refresh tokens older than {days_old} days")

        return deleted_count

    async def run_all_cleanup_tasks(self) -> dict[str, int]:
        """Run every cleanup task and return the number of rows each removed."""
        logger.info("Starting cleanup tasks")
        results = {
            "orphaned_tokens": await self.cleanup_orphaned_refresh_tokens(),
            "expired_tokens": await self.cleanup_expired_refresh_tokens(),
            "old_revoked_tokens": await self.cleanup_old_revoked_tokens(),
        }
        logger.info(f"Cleanup tasks finished: {results}")
        return results
