# tests/test_ownership.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.ownership import commission_forfeited, grace_period_end, resolve_ownership
from app.core.roles import PartnerRole
from app.crud.partner import ContractState
from tests.factories import connect, create_contract, create_profile

KST = timezone(timedelta(hours=9))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def terminated(at: datetime | None, *, db_recovered: bool = False) -> ContractState:
    return ContractState(status="terminated", terminated_at=at, db_recovered=db_recovered)


# ---------------------------------------------------------
# Grace period (pure)
# ---------------------------------------------------------
def test_grace_period_ends_at_close_of_seventh_business_day():
    t = datetime(2026, 3, 10, 1, 0, tzinfo=KST)

    end = grace_period_end(t, tz=KST)

    assert end.astimezone(KST).date() == datetime(2026, 3, 17).date()
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


def test_grace_period_uses_business_date_not_utc_date():
    # 2026-03-09 16:00 UTC is already 2026-03-10 in KST
    t = datetime(2026, 3, 9, 16, 0, tzinfo=timezone.utc)

    end = grace_period_end(t, tz=KST)

    assert end == datetime.combine(datetime(2026, 3, 17).date(), datetime.max.time(), tzinfo=KST)


def test_sale_on_last_grace_second_is_kept():
    contract = terminated(datetime(2026, 3, 10, 1, 0, tzinfo=KST))
    assert commission_forfeited(contract, datetime(2026, 3, 17, 23, 59, 59, tzinfo=KST), tz=KST) is False


def test_sale_after_grace_midnight_is_forfeited():
    contract = terminated(datetime(2026, 3, 10, 1, 0, tzinfo=KST))
    assert commission_forfeited(contract, datetime(2026, 3, 18, 0, 0, 0, tzinfo=KST), tz=KST) is True


def test_naive_timestamps_are_treated_as_utc():
    # naive 2026-03-09 16:00 == 2026-03-10 01:00 KST
    contract = terminated(datetime(2026, 3, 9, 16, 0))
    assert commission_forfeited(contract, datetime(2026, 3, 17, 14, 59, 59), tz=KST) is False
    assert commission_forfeited(contract, datetime(2026, 3, 17, 15, 0, 0), tz=KST) is True


def test_db_recovered_forfeits_immediately():
    t = utcnow()
    contract = terminated(t, db_recovered=True)
    assert commission_forfeited(contract, t + timedelta(minutes=1)) is True


def test_terminated_without_date_is_kept():
    assert commission_forfeited(terminated(None), utcnow()) is False


@pytest.mark.parametrize("status", ["active", "pending"])
def test_non_terminated_contracts_are_kept(status):
    contract = ContractState(status=status, terminated_at=utcnow() - timedelta(days=30), db_recovered=True)
    assert commission_forfeited(contract, utcnow()) is False


def test_no_contract_is_kept():
    assert commission_forfeited(None, utcnow()) is False


# ---------------------------------------------------------
# Resolver (database)
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_active_agent_keeps_sale(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    await create_contract(db, agent, status="active")

    ownership = await resolve_ownership(db, agent, utcnow(), lead_manager_id=manager.id)

    assert ownership.final_role is PartnerRole.SALES_AGENT
    assert ownership.final_agent_id == agent.id
    assert ownership.final_manager_id == manager.id
    assert ownership.transferred is False


@pytest.mark.asyncio
async def test_agent_within_grace_keeps_sale(db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await create_contract(db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=3))

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.SALES_AGENT
    assert ownership.final_agent_id == agent.id


@pytest.mark.asyncio
async def test_terminated_agent_transfers_to_active_manager(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    await create_contract(db, manager, status="active")
    await create_contract(db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=10))

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.BRANCH_MANAGER
    assert ownership.final_manager_id == manager.id
    assert ownership.final_agent_id is None
    assert ownership.transferred_from is PartnerRole.SALES_AGENT


@pytest.mark.asyncio
async def test_terminated_agent_without_manager_transfers_to_hq(db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await create_contract(db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=10))

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.HQ
    assert ownership.final_manager_id is None
    assert ownership.final_agent_id is None
    assert ownership.transferred_from is PartnerRole.SALES_AGENT


@pytest.mark.asyncio
async def test_agent_and_manager_beyond_grace_transfer_to_hq(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    await create_contract(db, manager, status="terminated", terminated_at=utcnow() - timedelta(days=20))
    await create_contract(db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=10))

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.HQ
    assert ownership.final_agent_id is None


@pytest.mark.asyncio
async def test_db_recovered_agent_transfers_within_grace(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    await create_contract(
        db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=1), db_recovered=True
    )

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.BRANCH_MANAGER
    assert ownership.final_manager_id == manager.id


@pytest.mark.asyncio
async def test_manager_sale_keeps_lead_agent(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)

    ownership = await resolve_ownership(db, manager, utcnow(), lead_agent_id=agent.id)

    assert ownership.final_role is PartnerRole.BRANCH_MANAGER
    assert ownership.final_manager_id == manager.id
    assert ownership.final_agent_id == agent.id


@pytest.mark.asyncio
async def test_terminated_manager_sale_transfers_to_hq(db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    await create_contract(db, manager, status="terminated", terminated_at=utcnow() - timedelta(days=9))

    ownership = await resolve_ownership(db, manager, utcnow())

    assert ownership.final_role is PartnerRole.HQ
    assert ownership.transferred_from is PartnerRole.BRANCH_MANAGER


@pytest.mark.asyncio
async def test_hq_sale_stays_with_hq(db):
    hq = await create_profile(db, PartnerRole.HQ)

    ownership = await resolve_ownership(db, hq, utcnow())

    assert ownership.final_role is PartnerRole.HQ
    assert ownership.final_manager_id == hq.id
    assert ownership.transferred is False


@pytest.mark.asyncio
async def test_latest_contract_is_authoritative(db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await create_contract(
        db,
        agent,
        status="terminated",
        terminated_at=utcnow() - timedelta(days=60),
        created_at=utcnow() - timedelta(days=90),
    )
    # renewed afterwards
    await create_contract(db, agent, status="active", created_at=utcnow() - timedelta(days=30))

    ownership = await resolve_ownership(db, agent, utcnow())

    assert ownership.final_role is PartnerRole.SALES_AGENT
