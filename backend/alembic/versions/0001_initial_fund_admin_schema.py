"""Initial fund administration schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# Revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("role", sa.SmallInteger(), nullable=False, server_default=sa.text("3")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("phone_number", sa.String(40), nullable=True),
        sa.Column("country", sa.String(80), nullable=True),
        sa.Column("investor_type", sa.String(40), nullable=True),
        sa.Column("profile_image", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role >= 0 AND role <= 4", name="ck_users_role_range"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # parent_structure_id is a lookup reference, intentionally without a foreign key.
    op.create_table(
        "structures",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="Active"),
        sa.Column("parent_structure_id", sa.String(64), nullable=True),
        sa.Column("hierarchy_level", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("base_currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("inception_date", sa.Date(), nullable=True),
        sa.Column("total_commitment", sa.Numeric(20, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_called", sa.Numeric(20, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_distributed", sa.Numeric(20, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_invested", sa.Numeric(20, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("management_fee", sa.Numeric(5, 2), nullable=False, server_default=sa.text("2")),
        sa.Column("carried_interest", sa.Numeric(5, 2), nullable=False, server_default=sa.text("20")),
        sa.Column("hurdle_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("8")),
        *_timestamps(),
        sa.CheckConstraint("hierarchy_level >= 0", name="ck_structures_hierarchy_level_non_negative"),
        sa.CheckConstraint(
            "(parent_structure_id IS NULL AND hierarchy_level = 0) OR "
            "(parent_structure_id IS NOT NULL AND hierarchy_level > 0)",
            name="ck_structures_root_level_zero",
        ),
        sa.CheckConstraint("parent_structure_id IS NULL OR parent_structure_id <> id", name="ck_structures_not_self_parent"),
    )
    op.create_index("ix_structures_type", "structures", ["type"])
    op.create_index("ix_structures_parent_structure_id", "structures", ["parent_structure_id"])
    op.create_index("ix_structures_created_by", "structures", ["created_by"])
    op.create_index("ix_structures_created_by_parent", "structures", ["created_by", "parent_structure_id"])

    op.create_table(
        "investments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("structure_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("investment_name", sa.String(255), nullable=True),
        sa.Column("investment_type", sa.String(20), nullable=False, server_default="EQUITY"),
        sa.Column("amount", sa.Numeric(20, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(50), nullable=False, server_default="Active"),
        *_timestamps(),
    )
    op.create_index("ix_investments_structure_id", "investments", ["structure_id"])
    op.create_index("ix_investments_user_id", "investments", ["user_id"])
    op.create_index("ix_investments_structure_user", "investments", ["structure_id", "user_id"])

    op.create_table(
        "smart_contracts",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("structure_id", sa.String(64), nullable=False),
        sa.Column("contract_type", sa.String(32), nullable=False),
        sa.Column("network", sa.String(64), nullable=True),
        sa.Column("token_name", sa.String(255), nullable=True),
        sa.Column("token_symbol", sa.String(32), nullable=True),
        sa.Column("max_tokens", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("minted_tokens", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("token_value", sa.Numeric(20, 6), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("project_name", sa.String(255), nullable=True),
        sa.Column("deployment_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("deployed_by", sa.String(64), nullable=False),
        sa.Column("contract_address", sa.String(128), nullable=True),
        sa.Column("transaction_hash", sa.String(128), nullable=True),
        sa.Column("block_number", sa.BigInteger(), nullable=True),
        sa.Column("deployed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("compliance_registry_address", sa.String(128), nullable=True),
        sa.Column("factory_address", sa.String(128), nullable=True),
        sa.Column("identity_registry_address", sa.String(128), nullable=True),
        sa.Column("deployment_error", sa.Text(), nullable=True),
        sa.Column("failed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deployment_response", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "deployment_status IN ('pending', 'deploying', 'deployed', 'failed')",
            name="ck_smart_contracts_status_values",
        ),
        sa.CheckConstraint(
            "deployment_status NOT IN ('pending', 'deploying') OR ("
            "contract_address IS NULL AND transaction_hash IS NULL AND block_number IS NULL "
            "AND deployment_error IS NULL)",
            name="ck_smart_contracts_in_flight_fields_empty",
        ),
        sa.CheckConstraint(
            "deployment_status <> 'deployed' OR ("
            "contract_address IS NOT NULL AND transaction_hash IS NOT NULL AND block_number IS NOT NULL "
            "AND deployment_error IS NULL)",
            name="ck_smart_contracts_deployed_fields",
        ),
        sa.CheckConstraint(
            "deployment_status <> 'failed' OR ("
            "deployment_error IS NOT NULL AND contract_address IS NULL AND transaction_hash IS NULL "
            "AND block_number IS NULL)",
            name="ck_smart_contracts_failed_fields",
        ),
        sa.CheckConstraint("minted_tokens >= 0 AND max_tokens >= 0", name="ck_smart_contracts_token_counts"),
    )
    op.create_index("ix_smart_contracts_structure_id", "smart_contracts", ["structure_id"])
    op.create_index("ix_smart_contracts_token_symbol", "smart_contracts", ["token_symbol"])
    op.create_index("ix_smart_contracts_deployment_status", "smart_contracts", ["deployment_status"])
    op.create_index("ix_smart_contracts_deployed_by", "smart_contracts", ["deployed_by"])
    op.create_index("ix_smart_contracts_contract_address", "smart_contracts", ["contract_address"])
    op.create_index("ix_smart_contracts_structure_status", "smart_contracts", ["structure_id", "deployment_status"])


def downgrade() -> None:
    op.drop_table("smart_contracts")
    op.drop_table("investments")
    op.drop_table("structures")
    op.drop_table("users")
