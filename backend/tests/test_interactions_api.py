# tests/test_interactions_api.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import func, select

import app.core.ledger_sync as ledger_sync
from app.core.roles import AccountRole, PartnerRole
from app.core.security import create_access_token, decode_access_token
from app.models.account import Account
from app.models.admin_notification import AdminNotification
from app.models.commission_ledger import CommissionLedgerEntry
from app.models.lead import Lead
from app.models.lead_interaction import LeadInteraction
from app.models.sale import Sale
from tests.factories import (
    auth_headers,
    connect,
    create_account,
    create_contract,
    create_lead,
    create_product,
    create_profile,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def partner_account(db, profile) -> Account:
    return await db.get(Account, profile.account_id)


def interactions_url(lead_id) -> str:
    return f"/api/v1/partner/customers/{lead_id}/interactions"


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_note_without_status_creates_interaction_only(client, db, sessionmaker):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    lead = await create_lead(db, agent=agent, status="CONTACTED")
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(
        interactions_url(lead.id),
        headers=auth_headers(account),
        json={"note": "  Called, wants a balcony cabin  ", "interaction_type": "call"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["interaction_type"] == "CALL"
    assert body["lead_status"] == "CONTACTED"
    assert body["sale"] is None

    async with sessionmaker() as check:
        interaction = (
            await check.execute(select(LeadInteraction).where(LeadInteraction.lead_id == lead.id))
        ).scalar_one()
        assert interaction.note == "Called, wants a balcony cabin"
        assert interaction.profile_id == agent.id

        refreshed = await check.get(Lead, lead.id)
        assert refreshed.last_contacted_at is not None


@pytest.mark.asyncio
async def test_purchased_status_records_sale_and_commission(client, db, sessionmaker):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    product = await create_product(db, net_revenue=1_000_000)
    lead = await create_lead(db, manager=manager, agent=agent, product_code=product.product_code)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(
        interactions_url(lead.id),
        headers=auth_headers(account),
        json={"note": "Deposit received", "status": "purchased"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["lead_status"] == "PURCHASED"
    assert body["sale"]["sales_commission"] == 33_000
    assert body["sale"]["agent_id"] == str(agent.id)
    assert body["sale"]["commission_processed"] is True

    async with sessionmaker() as check:
        entry = (
            await check.execute(
                select(CommissionLedgerEntry).where(CommissionLedgerEntry.sale_id == uuid.UUID(body["sale"]["id"]))
            )
        ).scalar_one()
        assert entry.profile_id == agent.id
        assert entry.gross_amount == 33_000
        assert entry.net_amount == 31_911


@pytest.mark.asyncio
async def test_repeated_purchased_interaction_keeps_one_sale(client, db, sessionmaker):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    product = await create_product(db, net_revenue=1_000_000)
    lead = await create_lead(db, agent=agent, product_code=product.product_code)
    account = await partner_account(db, agent)
    await db.commit()

    for note in ("Paid", "Paid (double click)"):
        r = await client.post(
            interactions_url(lead.id),
            headers=auth_headers(account),
            json={"note": note, "status": "PURCHASED"},
        )
        assert r.status_code == 201, r.text

    async with sessionmaker() as check:
        total = (
            await check.execute(select(func.count()).select_from(Sale).where(Sale.lead_id == lead.id))
        ).scalar_one()
        assert total == 1


@pytest.mark.asyncio
async def test_terminated_agent_purchase_goes_to_hq(client, db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await create_contract(db, agent, status="terminated", terminated_at=utcnow() - timedelta(days=10))
    product = await create_product(db, net_revenue=1_000_000)
    lead = await create_lead(db, agent=agent, product_code=product.product_code)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(
        interactions_url(lead.id),
        headers=auth_headers(account),
        json={"note": "Closed", "status": "PURCHASED"},
    )
    assert r.status_code == 201, r.text
    sale = r.json()["sale"]
    assert sale["override_commission"] == 33_000
    assert sale["sales_commission"] is None
    assert sale["agent_id"] is None


@pytest.mark.asyncio
async def test_ledger_failure_still_returns_201_and_alerts_admins(client, db, sessionmaker, monkeypatch):
    admin = await create_account(db, role=AccountRole.ADMIN.value)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    product = await create_product(db, net_revenue=1_000_000)
    lead = await create_lead(db, agent=agent, product_code=product.product_code)
    account = await partner_account(db, agent)
    await db.commit()

    async def broken_sync(*args, **kwargs):
        raise RuntimeError("ledger write failed")

    monkeypatch.setattr(ledger_sync, "sync_sale_commission_ledgers", broken_sync)

    r = await client.post(
        interactions_url(lead.id),
        headers=auth_headers(account),
        json={"note": "Paid in full", "status": "PURCHASED"},
    )
    assert r.status_code == 201, r.text
    sale = r.json()["sale"]
    assert sale["commission_processed"] is False
    assert sale["commission_status"] == "FAILED"

    async with sessionmaker() as check:
        notes = (
            await check.execute(
                select(AdminNotification).where(AdminNotification.recipient_account_id == admin.id)
            )
        ).scalars().all()
        assert len(notes) == 1
        assert str(notes[0].sale_id) == sale["id"]
        assert notes[0].priority == "high"

    # admin retries once the ledger is healthy again
    monkeypatch.undo()

    r = await client.post(f"/api/v1/admin/sales/{sale['id']}/commission/retry", headers=auth_headers(admin))
    assert r.status_code == 200, r.text
    assert r.json()["commission_processed"] is True
    assert r.json()["error"] is None

    async with sessionmaker() as check:
        count = (await check.execute(select(func.count()).select_from(AdminNotification))).scalar_one()
        assert count == 1


@pytest.mark.asyncio
async def test_agent_cannot_touch_another_agents_lead(client, db):
    owner = await create_profile(db, PartnerRole.SALES_AGENT)
    other = await create_profile(db, PartnerRole.SALES_AGENT)
    lead = await create_lead(db, agent=owner)
    account = await partner_account(db, other)
    await db.commit()

    r = await client.post(interactions_url(lead.id), headers=auth_headers(account), json={"note": "hi"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_manager_can_update_team_agents_lead(client, db):
    manager = await create_profile(db, PartnerRole.BRANCH_MANAGER)
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    await connect(db, manager, agent)
    lead = await create_lead(db, agent=agent)
    account = await partner_account(db, manager)
    await db.commit()

    r = await client.post(interactions_url(lead.id), headers=auth_headers(account), json={"note": "Checked in"})
    assert r.status_code == 201, r.text


@pytest.mark.asyncio
async def test_unknown_lead_is_404(client, db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(interactions_url(uuid.uuid4()), headers=auth_headers(account), json={"note": "hi"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_invalid_status_is_422(client, db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    lead = await create_lead(db, agent=agent)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(
        interactions_url(lead.id),
        headers=auth_headers(account),
        json={"note": "hi", "status": "SHIPPED"},
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_blank_note_is_422(client, db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    lead = await create_lead(db, agent=agent)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(interactions_url(lead.id), headers=auth_headers(account), json={"note": "   "})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client):
    r = await client.post(interactions_url(uuid.uuid4()), json={"note": "hi"})
    assert r.status_code in (401, 403)


@pytest.mark.asyncio
async def test_non_partner_gets_403(client, db):
    customer = await create_account(db, role=AccountRole.CUSTOMER.value)
    await db.commit()

    r = await client.post(interactions_url(uuid.uuid4()), headers=auth_headers(customer), json={"note": "hi"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_partner_cannot_use_admin_endpoints(client, db):
    agent = await create_profile(db, PartnerRole.SALES_AGENT)
    account = await partner_account(db, agent)
    await db.commit()

    r = await client.post(f"/api/v1/admin/sales/{uuid.uuid4()}/commission/retry", headers=auth_headers(account))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_retry_unknown_sale_is_404(client, db):
    admin = await create_account(db, role=AccountRole.ADMIN.value)
    await db.commit()

    r = await client.post(f"/api/v1/admin/sales/{uuid.uuid4()}/commission/retry", headers=auth_headers(admin))
    assert r.status_code == 404


def test_access_token_carries_only_the_account_id():
    account_id = str(uuid.uuid4())
    token = create_access_token(account_id)

    claims = jwt.get_unverified_claims(token)
    assert set(claims) == {"sub", "exp", "iat"}
    assert decode_access_token(f"  'Bearer {token}' ") == account_id
