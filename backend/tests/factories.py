# tests/factories.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.core.roles import AccountRole, PartnerRole
from app.core.security import create_access_token
from app.models.account import Account
from app.models.affiliate_product import AffiliateProduct
from app.models.lead import Lead
from app.models.partner_contract import PartnerContract
from app.models.partner_profile import PartnerProfile
from app.models.partner_relation import PartnerRelation


def auth_headers(account: Account) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(account.id))}"}


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
async def create_account(db, *, role: str = AccountRole.PARTNER.value, email: Optional[str] = None) -> Account:
    account = Account(
        email=email or f"{role}-{uuid.uuid4().hex[:10]}@example.com",
        name=f"Test {role}",
        role=role,
        is_active=True,
    )
    db.add(account)
    await db.flush()
    return account


async def create_profile(
    db,
    role: PartnerRole,
    *,
    account: Optional[Account] = None,
    withholding_rate: Optional[Decimal] = None,
) -> PartnerProfile:
    if account is None:
        account = await create_account(db)
    profile = PartnerProfile(
        account_id=account.id,
        role=role.value,
        affiliate_code=f"{role.value[:2]}-{uuid.uuid4().hex[:8]}".upper(),
        display_name=f"{role.value.title()} {account.email}",
        status="ACTIVE",
        withholding_rate=withholding_rate,
        profile_metadata={},
    )
    db.add(profile)
    await db.flush()
    return profile


async def create_contract(
    db,
    profile: PartnerProfile,
    *,
    status: str = "active",
    terminated_at: Optional[datetime] = None,
    db_recovered: bool = False,
    created_at: Optional[datetime] = None,
) -> PartnerContract:
    contract = PartnerContract(
        account_id=profile.account_id,
        status=status,
        terminated_at=terminated_at,
        db_recovered=db_recovered,
        contract_metadata={},
    )
    if created_at is not None:
        contract.created_at = created_at
    db.add(contract)
    await db.flush()
    return contract


async def connect(db, manager: PartnerProfile, agent: PartnerProfile) -> PartnerRelation:
    relation = PartnerRelation(manager_id=manager.id, agent_id=agent.id, status="ACTIVE")
    db.add(relation)
    await db.flush()
    return relation


async def create_product(
    db,
    *,
    code: Optional[str] = None,
    sale_amount: int = 3_000_000,
    cost_amount: int = 2_000_000,
    net_revenue: Optional[int] = None,
    status: str = "active",
    is_published: bool = True,
) -> AffiliateProduct:
    product = AffiliateProduct(
        product_code=(code or f"CRUISE-{uuid.uuid4().hex[:6]}").upper(),
        title="Mediterranean Cruise 7N8D",
        currency="KRW",
        default_sale_amount=sale_amount,
        default_cost_amount=cost_amount,
        default_net_revenue=net_revenue,
        status=status,
        is_published=is_published,
    )
    db.add(product)
    await db.flush()
    return product


async def create_lead(
    db,
    *,
    manager: Optional[PartnerProfile] = None,
    agent: Optional[PartnerProfile] = None,
    product_code: Optional[str] = None,
    status: str = "IN_PROGRESS",
) -> Lead:
    metadata = {}
    if product_code is not None:
        metadata = {"productCode": product_code, "productName": "Mediterranean Cruise 7N8D"}
    lead = Lead(
        manager_id=manager.id if manager else None,
        agent_id=agent.id if agent else None,
        customer_name="Kim Minji",
        customer_phone="01012345678",
        status=status,
        lead_metadata=metadata,
    )
    db.add(lead)
    await db.flush()
    return lead
