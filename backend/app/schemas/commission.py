# app/schemas/commission.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CommissionRetryOut(BaseModel):
    sale_id: str
    commission_status: str
    commission_processed: bool
    error: Optional[str] = None
