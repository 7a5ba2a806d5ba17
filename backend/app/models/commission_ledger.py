# app/models/commission_ledger.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base


class CommissionLedgerEntry(Base):
    """
    Canonical, payee-scoped commission ledger.

    Stores:
      - gross_amount (commission owed before tax)
      - withholding_rate / withholding_amount (3.3% business income tax by default)
      - net_amount (what is actually paid out)
      - entry_type (BRANCH_COMMISSION, SALES_COMMISSION, OVERRIDE_COMMISSION)
      - metadata (JSON) with a snapshot of the sale it came from

    NOTE:
      - One row per (sale, payee, entry_type); re-syncing a sale never duplicates.
      - We map attribute `entry_metadata` -> DB column name "metadata".
    """

    __tablename__ = "commission_ledger_entries"
    __table_args__ = (
        UniqueConstraint("sale_id", "profile_id", "entry_type", name="uq_commission_ledger_sale_payee_type"),
        Index("ix_commission_ledger_profile_occurred", "profile_id", "occurred_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    sale_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("partner_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )

    entry_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="KRW", server_default="KRW")

    gross_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    withholding_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    withholding_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    net_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # AUTO (sale sync) | MANUAL (admin adjustment)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="AUTO", server_default="AUTO")

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # NOTE: attribute name cannot be "metadata" in SQLAlchemy Declarative
    entry_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",  # keep DB column name
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
