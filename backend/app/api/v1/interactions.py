# app/api/v1/interactions.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.partner import require_partner
from app.core.ownership import ensure_aware, utcnow
from app.core.purchase import PurchaseOutcome, PurchaseTrigger, record_purchase, report_failure
from app.core.roles import LeadStatus, PartnerRole, RelationStatus
from app.db.session import get_db
from app.models.lead import Lead
from app.models.lead_interaction import LeadInteraction
from app.models.partner_profile import PartnerProfile
from app.models.partner_relation import PartnerRelation
from app.models.sale import Sale
from app.schemas.interaction import InteractionCreate, InteractionCreatedOut, SaleSummaryOut

router = APIRouter(prefix="/partner", tags=["partner"])


async def _can_see_lead(db: AsyncSession, profile: PartnerProfile, lead: Lead) -> bool:
    role = profile.role
    if role == PartnerRole.HQ.value:
        return True
    if role == PartnerRole.SALES_AGENT.value:
        return lead.agent_id == profile.id
    if role == PartnerRole.BRANCH_MANAGER.value:
        if lead.manager_id == profile.id:
            return True
        if lead.agent_id is None:
            return False
        # leads of agents currently on this manager's team
        stmt = select(PartnerRelation.id).where(
            PartnerRelation.manager_id == profile.id,
            PartnerRelation.agent_id == lead.agent_id,
            PartnerRelation.status == RelationStatus.ACTIVE.value,
        )
        return (await db.execute(stmt)).first() is not None
    return False


def _sale_summary(sale: Optional[Sale]) -> Optional[SaleSummaryOut]:
    if sale is None:
        return None
    return SaleSummaryOut(
        id=str(sale.id),
        product_code=sale.product_code,
        net_revenue=int(sale.net_revenue or 0),
        status=sale.status,
        manager_id=str(sale.manager_id) if sale.manager_id else None,
        agent_id=str(sale.agent_id) if sale.agent_id else None,
        branch_commission=sale.branch_commission,
        sales_commission=sale.sales_commission,
        override_commission=sale.override_commission,
        commission_status=sale.commission_status,
        commission_processed=sale.commission_processed,
    )


@router.post(
    "/customers/{lead_id}/interactions",
    response_model=InteractionCreatedOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_interaction(
    lead_id: uuid.UUID,
    payload: InteractionCreate,
    db: AsyncSession = Depends(get_db),
    profile: PartnerProfile = Depends(require_partner),
):
    """
    Record a consultation note on a customer lead.

    Marking the lead PURCHASED records the sale and its commission in the
    same transaction. A commission failure never fails the request: the sale
    is kept as FAILED and admins are alerted after commit.
    """
    lead = (
        await db.execute(select(Lead).where(Lead.id == lead_id))
    ).scalar_one_or_none()
    if lead is None or not await _can_see_lead(db, profile, lead):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    occurred_at = ensure_aware(payload.occurred_at) if payload.occurred_at else utcnow()

    interaction = LeadInteraction(
        lead_id=lead.id,
        profile_id=profile.id,
        created_by_account_id=profile.account_id,
        interaction_type=payload.interaction_type,
        occurred_at=occurred_at,
        note=payload.note,
    )
    db.add(interaction)

    if payload.status is not None:
        lead.status = payload.status
    if payload.next_action_at is not None:
        lead.next_action_at = ensure_aware(payload.next_action_at)
    lead.last_contacted_at = occurred_at
    await db.flush()

    outcome = PurchaseOutcome()
    if payload.status == LeadStatus.PURCHASED.value:
        outcome = await record_purchase(
            db,
            PurchaseTrigger(
                lead_id=lead.id,
                product_code=lead.product_code,
                triggering_profile=profile,
                occurred_at=occurred_at,
                interaction_id=interaction.id,
            ),
        )

    lead_status = lead.status
    await db.commit()
    await report_failure(db, outcome)

    return InteractionCreatedOut(
        id=str(interaction.id),
        lead_id=str(lead_id),
        interaction_type=interaction.interaction_type,
        occurred_at=occurred_at,
        lead_status=lead_status,
        sale=_sale_summary(outcome.sale),
    )
