from __future__ import annotations

import uuid
from sqlalchemy import BigInteger, Boolean, Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from app.db.base import Base


class AffiliateProduct(Base):
    __tablename__ = "affiliate_products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_code = Column(String(64), nullable=False, unique=True, index=True)  # stored upper-case
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    currency = Column(String(8), nullable=False, default="KRW")
    default_sale_amount = Column(BigInteger, nullable=False, default=0)
    default_cost_amount = Column(BigInteger, nullable=False, default=0)
    default_net_revenue = Column(BigInteger, nullable=True)

    status = Column(String(32), nullable=False, default="active")  # active | archived
    is_published = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def net_revenue(self) -> int:
        if self.default_net_revenue:
            return int(self.default_net_revenue)
        return int(self.default_sale_amount or 0) - int(self.default_cost_amount or 0)
