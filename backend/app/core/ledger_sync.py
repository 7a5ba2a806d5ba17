# app/core/ledger_sync.py
"""
Commission ledger synchronization.

A sale's commission is materialized into payee ledger entries exactly once.
The sale row's commission_status is the guard: UNPROCESSED -> PROCESSED on
success, FAILED (retryable) when ledger writes blow up. A failed sync never
takes the sale down with it; it runs inside a SAVEPOINT of the caller's
transaction.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import AuditAction, log_commission_audit
from app.core.commission import build_ledger_lines
from app.core.config import settings
from app.core.errors import SaleNotFoundError
from app.core.ownership import utcnow
from app.core.roles import CommissionState
from app.db.upsert import insert_or_ignore
from app.models.affiliate_product import AffiliateProduct
from app.models.commission_ledger import CommissionLedgerEntry
from app.models.partner_profile import PartnerProfile
from app.models.sale import Sale

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2000


@dataclass(frozen=True)
class LedgerSyncResult:
    sale_id: uuid.UUID
    entries_created: int


@dataclass(frozen=True)
class LedgerSyncOutcome:
    synced: bool
    error: Optional[str] = None


async def _profile(db: AsyncSession, profile_id: uuid.UUID | None) -> PartnerProfile | None:
    if profile_id is None:
        return None
    return await db.get(PartnerProfile, profile_id)


async def sync_sale_commission_ledgers(
    db: AsyncSession,
    sale_id: uuid.UUID,
    *,
    regenerate: bool = False,
    include_hq: bool = True,
) -> LedgerSyncResult:
    """
    Write one ledger entry per payee of the sale. Existing entries for the
    same (sale, payee, type) are left alone unless `regenerate` is set.
    """
    sale = await db.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError(f"Sale {sale_id} not found")

    manager = await _profile(db, sale.manager_id)
    agent = await _profile(db, sale.agent_id)

    currency = settings.COMMISSION_CURRENCY
    if sale.product_id is not None:
        product = await db.get(AffiliateProduct, sale.product_id)
        if product is not None and product.currency:
            currency = product.currency

    lines = build_ledger_lines(
        branch_commission=sale.branch_commission,
        sales_commission=sale.sales_commission,
        override_commission=sale.override_commission,
        manager_id=sale.manager_id,
        agent_id=sale.agent_id,
        manager_withholding_rate=manager.withholding_rate if manager else None,
        agent_withholding_rate=agent.withholding_rate if agent else None,
        include_hq=include_hq,
    )

    if regenerate:
        await db.execute(delete(CommissionLedgerEntry).where(CommissionLedgerEntry.sale_id == sale.id))

    snapshot = {
        "source": "auto-generated",
        "saleId": str(sale.id),
        "saleStatus": sale.status,
        "managerId": str(sale.manager_id) if sale.manager_id else None,
        "agentId": str(sale.agent_id) if sale.agent_id else None,
        "saleDate": sale.sale_date.isoformat() if sale.sale_date else None,
        "productCode": sale.product_code,
    }

    created = 0
    for line in lines:
        stmt = insert_or_ignore(
            db,
            CommissionLedgerEntry.__table__,
            {
                "sale_id": sale.id,
                "profile_id": line.profile_id,
                "entry_type": line.entry_type.value,
                "currency": currency,
                "gross_amount": line.gross_amount,
                "withholding_rate": line.withholding_rate,
                "withholding_amount": line.withholding_amount,
                "net_amount": line.net_amount,
                "source": "AUTO",
                "occurred_at": sale.sale_date,
                "metadata": snapshot,
            },
        ).returning(CommissionLedgerEntry.__table__.c.id)
        if (await db.execute(stmt)).scalar_one_or_none() is not None:
            created += 1

    logger.debug("Ledger sync for sale %s: %d/%d entries created", sale.id, created, len(lines))
    return LedgerSyncResult(sale_id=sale.id, entries_created=created)


def _payee_id(sale: Sale) -> uuid.UUID | None:
    if sale.sales_commission is not None:
        return sale.agent_id
    return sale.manager_id


async def sync_ledger(db: AsyncSession, sale: Sale) -> bool:
    """
    Materialize the sale's commission, mark it processed and audit it.

    Returns False when another transaction already processed the sale.
    """
    stmt = select(Sale.commission_status).where(Sale.id == sale.id).with_for_update()
    current = (await db.execute(stmt)).scalar_one_or_none()
    if current is None:
        raise SaleNotFoundError(f"Sale {sale.id} not found")
    if current == CommissionState.PROCESSED.value:
        logger.info("Commission already processed for sale %s, skipping", sale.id)
        return False

    result = await sync_sale_commission_ledgers(db, sale.id)

    processed_at = utcnow()
    sale.commission_status = CommissionState.PROCESSED.value
    sale.commission_processed_at = processed_at
    sale.commission_error = None
    await db.flush()

    payee_id = _payee_id(sale)
    payee = await _profile(db, payee_id)
    await log_commission_audit(
        db,
        AuditAction.CALCULATED,
        sale.id,
        profile_id=payee_id,
        account_id=payee.account_id if payee else None,
        performed_by_system=True,
        details={
            "branchCommission": sale.branch_commission,
            "salesCommission": sale.sales_commission,
            "overrideCommission": sale.override_commission,
            "netRevenue": sale.net_revenue,
            "entriesCreated": result.entries_created,
            "processedAt": processed_at.isoformat(),
        },
    )

    logger.info("Commission processed and ledger created for sale %s", sale.id)
    return True


async def run_ledger_sync(db: AsyncSession, sale: Sale) -> LedgerSyncOutcome:
    """
    sync_ledger inside a SAVEPOINT. On failure the savepoint is rolled back
    and the sale is marked FAILED in the outer transaction, so committing the
    caller's work keeps the sale and leaves it eligible for retry.
    """
    try:
        async with db.begin_nested():
            synced = await sync_ledger(db, sale)
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        logger.exception("Failed to process commission for sale %s", sale.id)
        await db.refresh(sale)
        sale.commission_status = CommissionState.FAILED.value
        sale.commission_error = message[:MAX_ERROR_LENGTH]
        await db.flush()
        return LedgerSyncOutcome(synced=False, error=message)

    return LedgerSyncOutcome(synced=synced)


async def retry_ledger_sync(
    db: AsyncSession,
    sale_id: uuid.UUID,
    *,
    performed_by_account_id: uuid.UUID | None = None,
) -> LedgerSyncOutcome:
    """
    Manual re-run of the ledger step for an UNPROCESSED/FAILED sale.
    Does not commit.
    """
    sale = await db.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError(f"Sale {sale_id} not found")
    if sale.commission_processed:
        return LedgerSyncOutcome(synced=False)

    await log_commission_audit(
        db,
        AuditAction.RETRY,
        sale.id,
        performed_by_account_id=performed_by_account_id,
        performed_by_system=performed_by_account_id is None,
        details={"previousStatus": sale.commission_status, "previousError": sale.commission_error},
    )
    return await run_ledger_sync(db, sale)
