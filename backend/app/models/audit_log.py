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


class AuditLog(Base):
    """Append-only audit trail for contract and commission events."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_category_action", "category", "action"),
        Index("ix_audit_logs_sale", "sale_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # CONTRACT | COMMISSION | DB_RECOVERY | RENEWAL | TERMINATION
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    # CREATED | UPDATED | CALCULATED | PROCESSED | RETRY | FAILED | ...
    action: Mapped[str] = mapped_column(String(20), nullable=False)

    sale_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales.id", ondelete="SET NULL"),
        nullable=True,
    )
    contract_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("partner_contracts.id", ondelete="SET NULL"),
        nullable=True,
    )
    profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("partner_profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    performed_by_account_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    performed_by_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    audit_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
