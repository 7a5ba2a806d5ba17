from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from app.db.base import Base

HQ_SINGLETON_INDEX = "uq_partner_profiles_single_hq"


class PartnerProfile(Base):
    """
    One affiliate profile per partner account.

    Exactly one HQ profile may exist. The partial unique index below is what
    enforces it, so concurrent bootstraps converge on one row.
    """

    __tablename__ = "partner_profiles"
    __table_args__ = (
        Index(
            HQ_SINGLETON_INDEX,
            "role",
            unique=True,
            postgresql_where=text("role = 'HQ'"),
            sqlite_where=text("role = 'HQ'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # HQ | BRANCH_MANAGER | SALES_AGENT
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    affiliate_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")

    # Per-partner override of the default withholding tax rate (e.g. 0.033)
    withholding_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    # NOTE: attribute name cannot be "metadata" in SQLAlchemy Declarative
    profile_metadata: Mapped[dict[str, Any]] = mapped_column(
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
