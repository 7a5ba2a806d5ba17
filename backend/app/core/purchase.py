# app/core/purchase.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.commission import calculate_commission
from app.core.errors import LeadNotFoundError
from app.core.ledger_sync import run_ledger_sync
from app.core.notifications import notify_commission_calculation_failed
from app.core.ownership import resolve_ownership
from app.core.sale_recorder import find_open_sale, record_sale
from app.crud.catalog import get_active_product, normalize_product_code
from app.db.session import session_factory_for
from app.models.lead import Lead
from app.models.partner_profile import PartnerProfile
from app.models.sale import Sale

logger = logging.getLogger(__name__)

FailureNotifier = Callable[[uuid.UUID, str], Awaitable[None]]


@dataclass(frozen=True)
class PurchaseTrigger:
    lead_id: uuid.UUID
    product_code: str | None
    triggering_profile: PartnerProfile
    occurred_at: datetime
    interaction_id: uuid.UUID | None = None


@dataclass(frozen=True)
class PurchaseOutcome:
    sale: Optional[Sale] = None
    created: bool = False
    ledger_synced: bool = False
    error: Optional[str] = None


async def record_purchase(db: AsyncSession, trigger: PurchaseTrigger) -> PurchaseOutcome:
    """
    Resolve -> calculate -> record -> ledger sync, in the caller's transaction.

    Does not commit. A missing/inactive product is a silent no-op; a ledger
    failure is reported through `outcome.error` with the sale still pending
    commit.
    """
    product = await get_active_product(db, trigger.product_code)
    if product is None:
        logger.info("No active product for code %r, no sale created", trigger.product_code)
        return PurchaseOutcome()

    # lock the lead so concurrent purchases of it serialize where supported
    lead = (
        await db.execute(select(Lead).where(Lead.id == trigger.lead_id).with_for_update())
    ).scalar_one_or_none()
    if lead is None:
        raise LeadNotFoundError(f"Lead {trigger.lead_id} not found")

    product_code = normalize_product_code(product.product_code)
    existing = await find_open_sale(db, lead.id, product_code)
    if existing is not None:
        logger.info("Sale %s already open for lead %s / %s", existing.id, lead.id, product_code)
        return PurchaseOutcome(sale=existing)

    ownership = await resolve_ownership(
        db,
        trigger.triggering_profile,
        trigger.occurred_at,
        lead_manager_id=lead.manager_id,
        lead_agent_id=lead.agent_id,
    )
    breakdown = calculate_commission(product.net_revenue, ownership.final_role)

    sale = await record_sale(
        db,
        lead=lead,
        product=product,
        ownership=ownership,
        breakdown=breakdown,
        occurred_at=trigger.occurred_at,
        triggering_profile=trigger.triggering_profile,
        interaction_id=trigger.interaction_id,
    )
    if sale is None:
        return PurchaseOutcome(sale=await find_open_sale(db, lead.id, product_code))

    sync = await run_ledger_sync(db, sale)
    return PurchaseOutcome(sale=sale, created=True, ledger_synced=sync.synced, error=sync.error)


async def report_failure(
    db: AsyncSession,
    outcome: PurchaseOutcome,
    notifier: Optional[FailureNotifier] = None,
) -> None:
    """
    Hand a ledger failure to the admin notifier. Call after commit.
    """
    if outcome.error is None or outcome.sale is None:
        return

    if notifier is None:
        factory = session_factory_for(db)

        async def notifier(sale_id: uuid.UUID, message: str) -> None:
            await notify_commission_calculation_failed(sale_id, message, session_factory=factory)

    try:
        await notifier(outcome.sale.id, outcome.error)
    except Exception:
        logger.exception("Failure notifier raised for sale %s", outcome.sale.id)


async def process_purchase(
    db: AsyncSession,
    trigger: PurchaseTrigger,
    *,
    notifier: Optional[FailureNotifier] = None,
) -> PurchaseOutcome:
    """
    One complete unit of work for a "lead purchased" event: record, commit,
    then alert admins if the commission step failed.
    """
    outcome = await record_purchase(db, trigger)
    await db.commit()
    await report_failure(db, outcome, notifier)
    return outcome
