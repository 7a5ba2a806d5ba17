# app/core/commission.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Optional

from app.core.config import settings
from app.core.roles import LedgerEntryType, PartnerRole


@dataclass(frozen=True)
class CommissionBreakdown:
    branch_commission: int | None
    sales_commission: int | None
    override_commission: int | None

    @property
    def amount(self) -> int:
        return self.branch_commission or self.sales_commission or self.override_commission or 0

    def as_dict(self) -> dict[str, int | None]:
        return {
            "branchCommission": self.branch_commission,
            "salesCommission": self.sales_commission,
            "overrideCommission": self.override_commission,
        }


def flat_commission(net_revenue: int, rate: Optional[Decimal] = None) -> int:
    """
    Central policy: flat rate on net revenue, floored to whole currency units.
    """
    rate = settings.COMMISSION_RATE if rate is None else rate
    if net_revenue <= 0:
        return 0
    return int((Decimal(net_revenue) * rate).to_integral_value(rounding=ROUND_FLOOR))


def calculate_commission(
    net_revenue: int,
    final_role: PartnerRole | str,
    *,
    rate: Optional[Decimal] = None,
) -> CommissionBreakdown:
    """
    The single commission of a sale goes to whichever field matches the final
    owner. Never split: HQ's override replaces the forfeited payout.
    """
    amount = flat_commission(net_revenue, rate)
    role = PartnerRole(final_role)

    if role is PartnerRole.BRANCH_MANAGER:
        return CommissionBreakdown(branch_commission=amount, sales_commission=None, override_commission=None)
    if role is PartnerRole.SALES_AGENT:
        return CommissionBreakdown(branch_commission=None, sales_commission=amount, override_commission=None)
    return CommissionBreakdown(branch_commission=None, sales_commission=None, override_commission=amount)


# ---------------------------------------------------------
# Ledger lines
# ---------------------------------------------------------
@dataclass(frozen=True)
class LedgerLine:
    profile_id: uuid.UUID
    entry_type: LedgerEntryType
    gross_amount: int
    withholding_rate: Decimal
    withholding_amount: int
    net_amount: int


def withholding_amount(gross_amount: int, rate: Decimal) -> int:
    return int((Decimal(gross_amount) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _line(profile_id: uuid.UUID, entry_type: LedgerEntryType, amount: int, rate: Decimal) -> LedgerLine:
    tax = withholding_amount(amount, rate)
    return LedgerLine(
        profile_id=profile_id,
        entry_type=entry_type,
        gross_amount=amount,
        withholding_rate=rate,
        withholding_amount=tax,
        net_amount=amount - tax,
    )


def build_ledger_lines(
    *,
    branch_commission: int | None,
    sales_commission: int | None,
    override_commission: int | None,
    manager_id: uuid.UUID | None,
    agent_id: uuid.UUID | None,
    manager_withholding_rate: Optional[Decimal] = None,
    agent_withholding_rate: Optional[Decimal] = None,
    include_hq: bool = True,
) -> list[LedgerLine]:
    """
    One ledger line per payee implied by the sale's non-null commission.

    Branch and override commissions are paid to manager_id (the HQ profile
    for transferred sales); sales commission to agent_id. HQ pays no
    withholding on its own override. Zero amounts produce no line.
    """
    default_rate = settings.WITHHOLDING_RATE
    lines: list[LedgerLine] = []

    if branch_commission and manager_id is not None:
        rate = manager_withholding_rate if manager_withholding_rate is not None else default_rate
        lines.append(_line(manager_id, LedgerEntryType.BRANCH_COMMISSION, branch_commission, rate))

    if sales_commission and agent_id is not None:
        rate = agent_withholding_rate if agent_withholding_rate is not None else default_rate
        lines.append(_line(agent_id, LedgerEntryType.SALES_COMMISSION, sales_commission, rate))

    if include_hq and override_commission and manager_id is not None:
        lines.append(_line(manager_id, LedgerEntryType.OVERRIDE_COMMISSION, override_commission, Decimal("0")))

    return lines
