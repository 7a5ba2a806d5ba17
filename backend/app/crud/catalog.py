# app/crud/catalog.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.affiliate_product import AffiliateProduct


def normalize_product_code(code: str | None) -> str | None:
    if not code:
        return None
    c = str(code).strip().upper()
    return c or None


async def get_active_product(db: AsyncSession, product_code: str | None) -> AffiliateProduct | None:
    """
    Published, active product for a code. Codes are matched upper-case.
    """
    code = normalize_product_code(product_code)
    if code is None:
        return None

    stmt = (
        select(AffiliateProduct)
        .where(AffiliateProduct.product_code == code)
        .where(AffiliateProduct.status == "active")
        .where(AffiliateProduct.is_published.is_(True))
    )
    return (await db.execute(stmt)).scalar_one_or_none()
