# app/schemas/interaction.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.core.roles import LeadStatus


class InteractionCreate(BaseModel):
    note: str = Field(min_length=1, max_length=5000)
    interaction_type: str = Field(default="NOTE", max_length=30)
    occurred_at: Optional[datetime] = None

    # optional lead updates applied together with the interaction
    status: Optional[str] = None
    next_action_at: Optional[datetime] = None

    @field_validator("note")
    @classmethod
    def _strip_note(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("note cannot be blank")
        return v

    @field_validator("interaction_type")
    @classmethod
    def _upper_type(cls, v: str) -> str:
        return (v or "NOTE").strip().upper() or "NOTE"

    @field_validator("status")
    @classmethod
    def _valid_status(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        s = v.strip().upper()
        allowed = {x.value for x in LeadStatus}
        if s not in allowed:
            raise ValueError(f"status must be one of {sorted(allowed)}")
        return s


class SaleSummaryOut(BaseModel):
    id: str
    product_code: str
    net_revenue: int
    status: str

    manager_id: Optional[str] = None
    agent_id: Optional[str] = None

    branch_commission: Optional[int] = None
    sales_commission: Optional[int] = None
    override_commission: Optional[int] = None

    commission_status: str
    commission_processed: bool


class InteractionCreatedOut(BaseModel):
    id: str
    lead_id: str
    interaction_type: str
    occurred_at: datetime
    lead_status: str

    sale: Optional[SaleSummaryOut] = None
