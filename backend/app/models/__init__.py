# Import models here so Alembic can discover metadata.
from app.models.account import Account  # noqa: F401

# Partner network
from app.models.partner_profile import PartnerProfile  # noqa: F401
from app.models.partner_relation import PartnerRelation  # noqa: F401
from app.models.partner_contract import PartnerContract  # noqa: F401

# Catalog + CRM
from app.models.affiliate_product import AffiliateProduct  # noqa: F401
from app.models.lead import Lead  # noqa: F401
from app.models.lead_interaction import LeadInteraction  # noqa: F401

# Commission engine
from app.models.sale import Sale  # noqa: F401
from app.models.commission_ledger import CommissionLedgerEntry  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.admin_notification import AdminNotification  # noqa: F401
