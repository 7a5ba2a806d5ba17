# app/core/roles.py

import enum


class AccountRole(str, enum.Enum):
    ADMIN = "admin"
    PARTNER = "partner"
    CUSTOMER = "customer"


class PartnerRole(str, enum.Enum):
    HQ = "HQ"                          # head office, ultimate fallback payee
    BRANCH_MANAGER = "BRANCH_MANAGER"  # owns a team of agents
    SALES_AGENT = "SALES_AGENT"        # front-line seller


class RelationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"


class ContractStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    TERMINATED = "terminated"


class LeadStatus(str, enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    IN_PROGRESS = "IN_PROGRESS"
    PURCHASED = "PURCHASED"
    REFUNDED = "REFUNDED"
    CLOSED = "CLOSED"


class SaleStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


# Sales in these states block a second sale for the same lead/product.
OPEN_SALE_STATUSES = (SaleStatus.PENDING.value, SaleStatus.CONFIRMED.value)


class CommissionState(str, enum.Enum):
    UNPROCESSED = "UNPROCESSED"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"  # retryable


class LedgerEntryType(str, enum.Enum):
    BRANCH_COMMISSION = "BRANCH_COMMISSION"
    SALES_COMMISSION = "SALES_COMMISSION"
    OVERRIDE_COMMISSION = "OVERRIDE_COMMISSION"
