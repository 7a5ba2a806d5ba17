# app/core/notifications.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.roles import AccountRole
from app.models.account import Account
from app.models.admin_notification import AdminNotification

logger = logging.getLogger(__name__)

COMMISSION_CALCULATION_FAILED = "COMMISSION_CALCULATION_FAILED"


def _default_session_factory() -> async_sessionmaker[AsyncSession]:
    from app.db.session import AsyncSessionLocal

    return AsyncSessionLocal


async def notify_admins(
    *,
    notification_type: str,
    title: str,
    message: str,
    priority: str = "medium",
    sale_id: Optional[uuid.UUID] = None,
    details: Optional[dict[str, Any]] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> int:
    """
    Best-effort admin alert: one AdminNotification per active admin, written
    in its own transaction. Never raises; returns how many were written.
    """
    factory = session_factory or _default_session_factory()
    try:
        async with factory() as session:
            stmt = (
                select(Account.id)
                .where(Account.role == AccountRole.ADMIN.value)
                .where(Account.is_active.is_(True))
            )
            admin_ids = (await session.execute(stmt)).scalars().all()
            if not admin_ids:
                logger.warning("No admin accounts found for %s notification", notification_type)
                return 0

            for admin_id in admin_ids:
                session.add(
                    AdminNotification(
                        recipient_account_id=admin_id,
                        notification_type=notification_type,
                        title=title,
                        message=message,
                        priority=priority,
                        sale_id=sale_id,
                        details=details or {},
                    )
                )
            await session.commit()
    except Exception:
        logger.exception("Failed to send %s notification", notification_type)
        return 0

    logger.info("Sent %s notification to %d admin(s)", notification_type, len(admin_ids))
    return len(admin_ids)


async def notify_commission_calculation_failed(
    sale_id: uuid.UUID,
    error: str,
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> None:
    await notify_admins(
        notification_type=COMMISSION_CALCULATION_FAILED,
        title="Commission calculation failed",
        message=f"Commission processing failed for sale {sale_id}.",
        priority="high",
        sale_id=sale_id,
        details={"error": error},
        session_factory=session_factory,
    )
