# app/core/sale_recorder.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.commission import CommissionBreakdown
from app.core.config import settings
from app.core.errors import HQBootstrapError
from app.core.ownership import Ownership, utcnow
from app.core.roles import (
    OPEN_SALE_STATUSES,
    AccountRole,
    CommissionState,
    PartnerRole,
    SaleStatus,
)
from app.db.upsert import insert_or_ignore
from app.models.account import Account
from app.models.affiliate_product import AffiliateProduct
from app.models.lead import Lead
from app.models.partner_profile import PartnerProfile
from app.models.sale import Sale

logger = logging.getLogger(__name__)

HQ_AFFILIATE_CODE = "HQ"


async def find_open_sale(db: AsyncSession, lead_id: uuid.UUID, product_code: str) -> Sale | None:
    stmt = (
        select(Sale)
        .where(Sale.lead_id == lead_id)
        .where(Sale.product_code == product_code)
        .where(Sale.status.in_(OPEN_SALE_STATUSES))
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def find_hq_profile(db: AsyncSession) -> PartnerProfile | None:
    stmt = select(PartnerProfile).where(PartnerProfile.role == PartnerRole.HQ.value)
    return (await db.execute(stmt)).scalar_one_or_none()


async def _free_admin_account(db: AsyncSession) -> uuid.UUID | None:
    # partner_profiles.account_id is unique, so HQ needs an admin with no profile yet
    has_profile = exists(select(PartnerProfile.id).where(PartnerProfile.account_id == Account.id))
    stmt = (
        select(Account.id)
        .where(Account.role == AccountRole.ADMIN.value)
        .where(~has_profile)
        .order_by(Account.created_at.asc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _insert_admin_account(db: AsyncSession, email: str) -> uuid.UUID | None:
    await db.execute(
        insert_or_ignore(
            db,
            Account.__table__,
            {
                "email": email,
                "name": settings.HQ_DISPLAY_NAME,
                "role": AccountRole.ADMIN.value,
                "is_active": True,
            },
        )
    )
    account = (await db.execute(select(Account).where(Account.email == email))).scalar_one()
    if account.role != AccountRole.ADMIN.value:
        return None
    taken = await db.execute(select(PartnerProfile.id).where(PartnerProfile.account_id == account.id))
    if taken.first() is not None:
        return None
    return account.id


def _suffixed(value: str, sep: str = "-") -> str:
    return f"{value}{sep}{uuid.uuid4().hex[:8]}"


async def _find_or_create_admin_account(db: AsyncSession) -> uuid.UUID:
    admin_id = await _free_admin_account(db)
    if admin_id is not None:
        return admin_id

    email = Account.normalize_email(settings.HQ_BOOTSTRAP_EMAIL)
    admin_id = await _insert_admin_account(db, email)
    if admin_id is None:
        # bootstrap address belongs to a non-admin or an existing partner
        local, _, domain = email.partition("@")
        email = f"{_suffixed(local, '+')}@{domain}" if domain else _suffixed(email, "+")
        admin_id = await _insert_admin_account(db, email)
    if admin_id is None:
        raise HQBootstrapError(f"no admin account available for HQ ({email})")

    logger.info("Bootstrapped admin account %s for HQ", admin_id)
    return admin_id


async def _insert_hq_profile(db: AsyncSession, affiliate_code: str, created_for: str) -> None:
    admin_id = await _find_or_create_admin_account(db)
    await db.execute(
        insert_or_ignore(
            db,
            PartnerProfile.__table__,
            {
                "account_id": admin_id,
                "role": PartnerRole.HQ.value,
                "affiliate_code": affiliate_code,
                "display_name": settings.HQ_DISPLAY_NAME,
                "status": "ACTIVE",
                "metadata": {
                    "autoCreated": True,
                    "createdAt": utcnow().isoformat(),
                    "createdFor": created_for,
                },
            },
        )
    )


async def ensure_hq_profile(db: AsyncSession, *, created_for: str = "purchase_redirection") -> PartnerProfile:
    """
    Find the HQ profile or create it.

    Safe under concurrency: the insert is conflict-tolerant against the
    single-HQ unique index, and every caller re-reads the surviving row.
    If the "HQ" affiliate code is already held by another partner, HQ gets a
    suffixed code instead.
    """
    hq = await find_hq_profile(db)
    if hq is not None:
        return hq

    await _insert_hq_profile(db, HQ_AFFILIATE_CODE, created_for)
    hq = await find_hq_profile(db)
    if hq is None:
        await _insert_hq_profile(db, _suffixed(HQ_AFFILIATE_CODE), created_for)
        hq = await find_hq_profile(db)
    if hq is None:
        raise HQBootstrapError("HQ profile could not be created")
    logger.info("HQ profile %s ready", hq.id)
    return hq


def _sale_flags(ownership: Ownership, triggering_role: PartnerRole) -> dict[str, bool]:
    final = ownership.final_role
    return {
        "agentTerminated": triggering_role is PartnerRole.SALES_AGENT and ownership.final_agent_id is None,
        "managerTerminated": triggering_role is PartnerRole.BRANCH_MANAGER and final is PartnerRole.HQ,
        "transferredToManager": triggering_role is PartnerRole.SALES_AGENT and final is PartnerRole.BRANCH_MANAGER,
        "transferredToHQ": ownership.transferred and final is PartnerRole.HQ,
    }


async def record_sale(
    db: AsyncSession,
    *,
    lead: Lead,
    product: AffiliateProduct,
    ownership: Ownership,
    breakdown: CommissionBreakdown,
    occurred_at: datetime,
    triggering_profile: PartnerProfile,
    interaction_id: uuid.UUID | None = None,
) -> Sale | None:
    """
    Create the PENDING sale for (lead, product) unless an open one exists.

    Returns None when a PENDING/CONFIRMED sale is already there, including
    one committed by a concurrent request between our check and our insert.
    Persistence errors propagate and abort the caller's transaction.
    """
    product_code = str(product.product_code).upper()

    if await find_open_sale(db, lead.id, product_code) is not None:
        logger.info("Open sale already exists for lead %s / %s, skipping", lead.id, product_code)
        return None

    manager_id = ownership.final_manager_id
    if ownership.final_role is PartnerRole.HQ and manager_id is None:
        hq = await ensure_hq_profile(db)
        manager_id = hq.id

    net_revenue = product.net_revenue
    metadata = {
        "createdFromInteraction": interaction_id is not None,
        "interactionId": str(interaction_id) if interaction_id else None,
        "productName": lead.product_name or product.title,
        "triggeredBy": {"profileId": str(triggering_profile.id), "role": triggering_profile.role},
        **_sale_flags(ownership, PartnerRole(triggering_profile.role)),
    }

    stmt = insert_or_ignore(
        db,
        Sale.__table__,
        {
            "lead_id": lead.id,
            "product_id": product.id,
            "product_code": product_code,
            "sale_amount": int(product.default_sale_amount or 0),
            "cost_amount": int(product.default_cost_amount or 0),
            "net_revenue": net_revenue,
            "manager_id": manager_id,
            "agent_id": ownership.final_agent_id,
            "branch_commission": breakdown.branch_commission,
            "sales_commission": breakdown.sales_commission,
            "override_commission": breakdown.override_commission,
            "status": SaleStatus.PENDING.value,
            "sale_date": occurred_at,
            "commission_status": CommissionState.UNPROCESSED.value,
            "metadata": metadata,
        },
    ).returning(Sale.__table__.c.id)

    sale_id = (await db.execute(stmt)).scalar_one_or_none()
    if sale_id is None:
        logger.info("Concurrent sale won for lead %s / %s, skipping", lead.id, product_code)
        return None

    sale = await db.get(Sale, sale_id)
    logger.info(
        "Recorded sale %s for lead %s (%s, owner=%s)",
        sale_id,
        lead.id,
        product_code,
        ownership.final_role.value,
    )
    return sale
