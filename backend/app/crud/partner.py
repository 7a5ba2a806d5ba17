# app/crud/partner.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.roles import ContractStatus, RelationStatus
from app.models.partner_contract import PartnerContract
from app.models.partner_profile import PartnerProfile
from app.models.partner_relation import PartnerRelation


@dataclass(frozen=True)
class ContractState:
    status: str
    terminated_at: datetime | None
    db_recovered: bool

    @property
    def is_terminated(self) -> bool:
        return self.status == ContractStatus.TERMINATED.value


async def get_contract_state(db: AsyncSession, account_id: uuid.UUID) -> ContractState | None:
    """
    Status of the account's most recent contract, or None if it never signed one.
    """
    stmt = (
        select(PartnerContract)
        .where(PartnerContract.account_id == account_id)
        .order_by(PartnerContract.created_at.desc())
        .limit(1)
    )
    contract = (await db.execute(stmt)).scalar_one_or_none()
    if contract is None:
        return None

    return ContractState(
        status=(contract.status or "").strip().lower(),
        terminated_at=contract.terminated_at,
        db_recovered=bool(contract.db_recovered),
    )


async def get_active_manager(db: AsyncSession, agent_profile_id: uuid.UUID) -> PartnerProfile | None:
    """
    The manager currently connected to an agent through an ACTIVE relation.
    """
    stmt = (
        select(PartnerProfile)
        .join(PartnerRelation, PartnerRelation.manager_id == PartnerProfile.id)
        .where(PartnerRelation.agent_id == agent_profile_id)
        .where(PartnerRelation.status == RelationStatus.ACTIVE.value)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_profile_for_account(db: AsyncSession, account_id: uuid.UUID) -> PartnerProfile | None:
    stmt = select(PartnerProfile).where(PartnerProfile.account_id == account_id)
    return (await db.execute(stmt)).scalar_one_or_none()
