# app/core/ownership.py
"""
Commission ownership resolution.

Given the partner who closed a sale and the moment it happened, decide who is
entitled to the commission: the agent, the agent's branch manager, or HQ.

Terminated partners keep their commission for a grace period that ends at the
close of the GRACE_PERIOD_DAYS-th business day after termination. A partner
whose customer base was reclaimed (db_recovered) forfeits immediately.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.roles import PartnerRole
from app.crud.partner import ContractState, get_active_manager, get_contract_state
from app.models.partner_profile import PartnerProfile

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def business_timezone() -> timezone:
    return timezone(timedelta(hours=settings.BUSINESS_UTC_OFFSET_HOURS))


def grace_period_end(
    terminated_at: datetime,
    *,
    days: Optional[int] = None,
    tz: Optional[timezone] = None,
) -> datetime:
    """
    Last instant (23:59:59.999999, business time) of the grace window.
    """
    tz = tz or business_timezone()
    days = settings.GRACE_PERIOD_DAYS if days is None else days

    local = ensure_aware(terminated_at).astimezone(tz)
    last_day = local.date() + timedelta(days=days)
    return datetime.combine(last_day, time.max, tzinfo=tz)


def commission_forfeited(
    contract: ContractState | None,
    occurred_at: datetime,
    *,
    tz: Optional[timezone] = None,
) -> bool:
    """
    True when a partner with this contract state must hand the sale upward.
    """
    if contract is None or not contract.is_terminated:
        return False
    if contract.db_recovered:
        return True
    if contract.terminated_at is None:
        # terminated without a recorded date: nothing to measure grace against
        return False
    return ensure_aware(occurred_at) > grace_period_end(contract.terminated_at, tz=tz)


@dataclass(frozen=True)
class Ownership:
    final_role: PartnerRole
    final_manager_id: uuid.UUID | None
    final_agent_id: uuid.UUID | None
    transferred_from: PartnerRole | None = None

    @property
    def transferred(self) -> bool:
        return self.transferred_from is not None


async def _forfeits(db: AsyncSession, profile: PartnerProfile, occurred_at: datetime) -> bool:
    state = await get_contract_state(db, profile.account_id)
    return commission_forfeited(state, occurred_at)


async def resolve_ownership(
    db: AsyncSession,
    profile: PartnerProfile,
    occurred_at: datetime,
    *,
    lead_manager_id: uuid.UUID | None = None,
    lead_agent_id: uuid.UUID | None = None,
) -> Ownership:
    """
    Resolve the commission owner for a sale closed by `profile`.

    HQ results for a transferred sale carry final_manager_id=None; the sale
    recorder fills in the HQ profile id. Reads only.
    """
    role = PartnerRole(profile.role)

    if role is PartnerRole.HQ:
        return Ownership(PartnerRole.HQ, profile.id, None)

    if role is PartnerRole.BRANCH_MANAGER:
        if not await _forfeits(db, profile, occurred_at):
            return Ownership(PartnerRole.BRANCH_MANAGER, profile.id, lead_agent_id)

        logger.info("Manager %s is terminated beyond grace, transferring sale to HQ", profile.id)
        return Ownership(PartnerRole.HQ, None, None, transferred_from=PartnerRole.BRANCH_MANAGER)

    # SALES_AGENT
    if not await _forfeits(db, profile, occurred_at):
        return Ownership(PartnerRole.SALES_AGENT, lead_manager_id, profile.id)

    manager = await get_active_manager(db, profile.id)
    if manager is None:
        logger.info("Agent %s is terminated beyond grace, no manager found, transferring sale to HQ", profile.id)
        return Ownership(PartnerRole.HQ, None, None, transferred_from=PartnerRole.SALES_AGENT)

    if await _forfeits(db, manager, occurred_at):
        logger.info(
            "Agent %s and manager %s are terminated beyond grace, transferring sale to HQ",
            profile.id,
            manager.id,
        )
        return Ownership(PartnerRole.HQ, None, None, transferred_from=PartnerRole.SALES_AGENT)

    logger.info("Agent %s is terminated beyond grace, transferring sale to manager %s", profile.id, manager.id)
    return Ownership(PartnerRole.BRANCH_MANAGER, manager.id, None, transferred_from=PartnerRole.SALES_AGENT)
