from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base


class PartnerContract(Base):
    """
    Legal/financial agreement of a partner account.

    Renewals create new rows; the most recent contract of an account is the
    authoritative one.
    """

    __tablename__ = "partner_contracts"
    __table_args__ = (
        Index("ix_partner_contracts_account_created", "account_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    # pending | active | terminated
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    terminated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # customer base reclaimed on termination: commission forfeited immediately
    db_recovered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    contract_metadata: Mapped[dict[str, Any]] = mapped_column(
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
