# app/core/audit.py
from __future__ import annotations

import enum
import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog


class AuditCategory(str, enum.Enum):
    COMMISSION = "COMMISSION"


class AuditAction(str, enum.Enum):
    CALCULATED = "CALCULATED"
    RETRY = "RETRY"


async def log_audit(
    db: AsyncSession,
    *,
    category: AuditCategory,
    action: AuditAction,
    sale_id: Optional[uuid.UUID] = None,
    contract_id: Optional[uuid.UUID] = None,
    profile_id: Optional[uuid.UUID] = None,
    account_id: Optional[uuid.UUID] = None,
    performed_by_account_id: Optional[uuid.UUID] = None,
    performed_by_system: bool = False,
    details: Optional[dict[str, Any]] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """
    Append an audit record in the caller's transaction.
    Failures propagate: an audit write is part of the work it documents.
    """
    entry = AuditLog(
        category=category.value,
        action=action.value,
        sale_id=sale_id,
        contract_id=contract_id,
        profile_id=profile_id,
        account_id=account_id,
        performed_by_account_id=performed_by_account_id,
        performed_by_system=performed_by_system,
        details=details,
        audit_metadata=metadata,
    )
    db.add(entry)
    await db.flush()
    return entry


async def log_commission_audit(
    db: AsyncSession,
    action: AuditAction,
    sale_id: uuid.UUID,
    *,
    profile_id: Optional[uuid.UUID] = None,
    account_id: Optional[uuid.UUID] = None,
    performed_by_account_id: Optional[uuid.UUID] = None,
    performed_by_system: bool = False,
    details: Optional[dict[str, Any]] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> AuditLog:
    return await log_audit(
        db,
        category=AuditCategory.COMMISSION,
        action=action,
        sale_id=sale_id,
        profile_id=profile_id,
        account_id=account_id,
        performed_by_account_id=performed_by_account_id,
        performed_by_system=performed_by_system,
        details=details,
        metadata=metadata,
    )
