# app/models/sale.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base

OPEN_SALE_INDEX = "uq_sales_open_lead_product"


class Sale(Base):
    """
    Commission-bearing sale created when a lead is marked PURCHASED.

    Stores:
      - sale/cost/net revenue snapshot of the product
      - final payee ids (manager_id, agent_id) after ownership resolution
      - exactly one of branch/sales/override commission
      - commission_status: UNPROCESSED -> PROCESSED | FAILED (retryable)

    NOTE:
      - Only one PENDING/CONFIRMED sale per (lead_id, product_code); the
        partial unique index makes the check race-proof.
    """

    __tablename__ = "sales"
    __table_args__ = (
        Index(
            OPEN_SALE_INDEX,
            "lead_id",
            "product_code",
            unique=True,
            postgresql_where=text("status IN ('PENDING', 'CONFIRMED')"),
            sqlite_where=text("status IN ('PENDING', 'CONFIRMED')"),
        ),
        Index("ix_sales_manager_sale_date", "manager_id", "sale_date"),
        Index("ix_sales_agent_sale_date", "agent_id", "sale_date"),
        Index("ix_sales_commission_status", "commission_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    lead_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("affiliate_products.id", ondelete="SET NULL"),
        nullable=True,
    )
    product_code: Mapped[str] = mapped_column(String(64), nullable=False)

    sale_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cost_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    net_revenue: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    manager_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("partner_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    agent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("partner_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    branch_commission: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    sales_commission: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    override_commission: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # PENDING | CONFIRMED | CANCELLED | REFUNDED
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # UNPROCESSED | PROCESSED | FAILED
    commission_status: Mapped[str] = mapped_column(String(20), nullable=False, default="UNPROCESSED")
    commission_processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    commission_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # transfer flags, source interaction, product name
    sale_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def commission_processed(self) -> bool:
        return self.commission_status == "PROCESSED"
