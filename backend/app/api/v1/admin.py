# app/api/v1/admin.py
from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import require_admin
from app.core.errors import SaleNotFoundError
from app.core.ledger_sync import retry_ledger_sync
from app.core.notifications import notify_commission_calculation_failed
from app.db.session import get_db, session_factory_for
from app.models.account import Account
from app.models.sale import Sale
from app.schemas.commission import CommissionRetryOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/sales/{sale_id}/commission/retry", response_model=CommissionRetryOut)
async def retry_sale_commission(
    sale_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: Account = Depends(require_admin),
):
    """
    Re-run the ledger step of an UNPROCESSED/FAILED sale.
    Already processed sales are returned unchanged.
    """
    try:
        outcome = await retry_ledger_sync(db, sale_id, performed_by_account_id=admin.id)
    except SaleNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")

    sale = await db.get(Sale, sale_id)
    commission_status = sale.commission_status
    processed = sale.commission_processed
    await db.commit()

    if outcome.error is not None:
        await notify_commission_calculation_failed(
            sale_id, outcome.error, session_factory=session_factory_for(db)
        )

    logger.info("Commission retry for sale %s by %s -> %s", sale_id, admin.id, commission_status)
    return CommissionRetryOut(
        sale_id=str(sale_id),
        commission_status=commission_status,
        commission_processed=processed,
        error=outcome.error,
    )
