"""single HQ profile, one active manager per agent, one open sale per lead/product

Revision ID: 8d41b7e02c55
Revises: 3f2a9c1d7e10
Create Date: 2026-03-09

"""
from __future__ import annotations

from alembic import op


# revision identifiers, used by Alembic.
revision = "8d41b7e02c55"
down_revision = "3f2a9c1d7e10"
branch_labels = None
depends_on = None


HQ_INDEX = "uq_partner_profiles_single_hq"
ACTIVE_AGENT_INDEX = "uq_partner_relations_active_agent"
OPEN_SALE_INDEX = "uq_sales_open_lead_product"


def upgrade() -> None:
    # Enforce: at most one HQ profile
    op.execute(
        f"""
        CREATE UNIQUE INDEX {HQ_INDEX}
        ON partner_profiles (role)
        WHERE role = 'HQ';
        """
    )

    # Enforce: an agent has at most one ACTIVE manager
    op.execute(
        f"""
        CREATE UNIQUE INDEX {ACTIVE_AGENT_INDEX}
        ON partner_relations (agent_id)
        WHERE status = 'ACTIVE';
        """
    )

    # Enforce: only one open sale per lead/product
    # Open = PENDING or CONFIRMED
    op.execute(
        f"""
        CREATE UNIQUE INDEX {OPEN_SALE_INDEX}
        ON sales (lead_id, product_code)
        WHERE status IN ('PENDING', 'CONFIRMED');
        """
    )


def downgrade() -> None:
    op.execute(f"DROP INDEX IF EXISTS {OPEN_SALE_INDEX};")
    op.execute(f"DROP INDEX IF EXISTS {ACTIVE_AGENT_INDEX};")
    op.execute(f"DROP INDEX IF EXISTS {HQ_INDEX};")
