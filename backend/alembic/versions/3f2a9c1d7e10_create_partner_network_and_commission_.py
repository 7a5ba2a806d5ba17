"""create partner network, crm and commission tables

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-03-02
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f2a9c1d7e10"
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at():
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    # -----------------------------------------------------
    # 1) Accounts + partner network
    # -----------------------------------------------------
    op.create_table(
        "accounts",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="customer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)
    op.create_index("ix_accounts_role", "accounts", ["role"])

    op.create_table(
        "partner_profiles",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("affiliate_code", sa.String(length=32), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        sa.Column("withholding_rate", sa.Numeric(5, 4), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_partner_profiles_account_id", "partner_profiles", ["account_id"], unique=True)
    op.create_index("ix_partner_profiles_affiliate_code", "partner_profiles", ["affiliate_code"], unique=True)
    op.create_index("ix_partner_profiles_role", "partner_profiles", ["role"])

    op.create_table(
        "partner_relations",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("manager_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("agent_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        sa.Column("connected_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("disconnected_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_partner_relations_agent_id", "partner_relations", ["agent_id"])
    op.create_index("ix_partner_relations_manager_status", "partner_relations", ["manager_id", "status"])

    op.create_table(
        "partner_contracts",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("terminated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("db_recovered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_partner_contracts_account_created", "partner_contracts", ["account_id", "created_at"])

    # -----------------------------------------------------
    # 2) Catalog + CRM
    # -----------------------------------------------------
    op.create_table(
        "affiliate_products",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("product_code", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="KRW"),
        sa.Column("default_sale_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("default_cost_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("default_net_revenue", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_affiliate_products_product_code", "affiliate_products", ["product_code"], unique=True)

    op.create_table(
        "leads",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("manager_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("agent_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("customer_name", sa.String(length=200), nullable=True),
        sa.Column("customer_phone", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="NEW"),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_contacted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_action_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_leads_manager_status", "leads", ["manager_id", "status"])
    op.create_index("ix_leads_agent_status", "leads", ["agent_id", "status"])

    op.create_table(
        "lead_interactions",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("lead_id", _uuid(), sa.ForeignKey("leads.id", ondelete="CASCADE"), nullable=False),
        sa.Column("profile_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_by_account_id", _uuid(), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("interaction_type", sa.String(length=30), nullable=False, server_default="NOTE"),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_lead_interactions_lead_occurred", "lead_interactions", ["lead_id", "occurred_at"])

    # -----------------------------------------------------
    # 3) Sales + commission ledger
    # -----------------------------------------------------
    op.create_table(
        "sales",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("lead_id", _uuid(), sa.ForeignKey("leads.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", _uuid(), sa.ForeignKey("affiliate_products.id", ondelete="SET NULL"), nullable=True),
        sa.Column("product_code", sa.String(length=64), nullable=False),
        sa.Column("sale_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("cost_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("net_revenue", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("manager_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("agent_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("branch_commission", sa.BigInteger(), nullable=True),
        sa.Column("sales_commission", sa.BigInteger(), nullable=True),
        sa.Column("override_commission", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("sale_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("commission_status", sa.String(length=20), nullable=False, server_default="UNPROCESSED"),
        sa.Column("commission_processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("commission_error", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        _created_at(),
        _updated_at(),
    )
    op.create_index("ix_sales_manager_sale_date", "sales", ["manager_id", "sale_date"])
    op.create_index("ix_sales_agent_sale_date", "sales", ["agent_id", "sale_date"])
    op.create_index("ix_sales_commission_status", "sales", ["commission_status"])

    op.create_table(
        "commission_ledger_entries",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("sale_id", _uuid(), sa.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False),
        sa.Column("profile_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("entry_type", sa.String(length=40), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="KRW"),
        sa.Column("gross_amount", sa.BigInteger(), nullable=False),
        sa.Column("withholding_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("withholding_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("net_amount", sa.BigInteger(), nullable=False),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="AUTO"),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        _created_at(),
        sa.UniqueConstraint("sale_id", "profile_id", "entry_type", name="uq_commission_ledger_sale_payee_type"),
    )
    op.create_index("ix_commission_ledger_entries_sale_id", "commission_ledger_entries", ["sale_id"])
    op.create_index("ix_commission_ledger_entries_entry_type", "commission_ledger_entries", ["entry_type"])
    op.create_index(
        "ix_commission_ledger_profile_occurred",
        "commission_ledger_entries",
        ["profile_id", "occurred_at"],
    )

    # -----------------------------------------------------
    # 4) Audit trail + admin notifications
    # -----------------------------------------------------
    op.create_table(
        "audit_logs",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("sale_id", _uuid(), sa.ForeignKey("sales.id", ondelete="SET NULL"), nullable=True),
        sa.Column("contract_id", _uuid(), sa.ForeignKey("partner_contracts.id", ondelete="SET NULL"), nullable=True),
        sa.Column("profile_id", _uuid(), sa.ForeignKey("partner_profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("account_id", _uuid(), sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "performed_by_account_id",
            _uuid(),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("performed_by_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_audit_logs_category_action", "audit_logs", ["category", "action"])
    op.create_index("ix_audit_logs_sale", "audit_logs", ["sale_id"])

    op.create_table(
        "admin_notifications",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column(
            "recipient_account_id",
            _uuid(),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("notification_type", sa.String(length=40), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="medium"),
        sa.Column("sale_id", _uuid(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(
        "ix_admin_notifications_recipient_created",
        "admin_notifications",
        ["recipient_account_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("admin_notifications")
    op.drop_table("audit_logs")
    op.drop_table("commission_ledger_entries")
    op.drop_table("sales")
    op.drop_table("lead_interactions")
    op.drop_table("leads")
    op.drop_table("affiliate_products")
    op.drop_table("partner_contracts")
    op.drop_table("partner_relations")
    op.drop_table("partner_profiles")
    op.drop_table("accounts")
