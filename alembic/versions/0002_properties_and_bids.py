"""properties + append-only bids

Revision ID: 0002_properties_and_bids
Revises: 0001_tenants_and_users
Create Date: 2026-10-05
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0002_properties_and_bids"
down_revision = "0001_tenants_and_users"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "properties",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=False),
        sa.Column("eircode", sa.String(length=16), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=16),
            nullable=False,
            server_default=sa.text("'DRAFT'"),
        ),
        sa.Column(
            "bidding_mode",
            sa.String(length=16),
            nullable=False,
            server_default=sa.text("'OPEN'"),
        ),
        sa.Column("price_guide", sa.Numeric(14, 2), nullable=False),
        sa.Column("minimum_offer", sa.Numeric(14, 2), nullable=True),
        sa.Column("min_increment", sa.Integer(), nullable=False, server_default=sa.text("1000")),
        sa.Column("bidding_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("assigned_agent_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("accepted_bid_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_agent_id"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('DRAFT','LIVE','UNDER_OFFER','SOLD')", name="ck_properties_status"
        ),
        sa.CheckConstraint(
            "bidding_mode IN ('OPEN','SEALED')", name="ck_properties_bidding_mode"
        ),
        sa.CheckConstraint("price_guide >= 0", name="ck_properties_price_guide_nonneg"),
        sa.CheckConstraint(
            "minimum_offer IS NULL OR minimum_offer >= 0", name="ck_properties_min_offer_nonneg"
        ),
        sa.CheckConstraint("min_increment > 0", name="ck_properties_min_increment_pos"),
    )
    op.create_index("ix_properties_tenant_status", "properties", ["tenant_id", "status"])

    op.create_table(
        "bids",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("property_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("buyer_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("bid_hash", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["buyer_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("amount > 0", name="ck_bids_amount_positive"),
    )
    op.create_index("ix_bids_property_amount", "bids", ["property_id", "amount"])
    op.create_index("ix_bids_property_created", "bids", ["property_id", "created_at"])
    op.create_index("ix_bids_tenant_buyer", "bids", ["tenant_id", "buyer_user_id"])

    op.create_foreign_key(
        "fk_properties_accepted_bid",
        "properties",
        "bids",
        ["accepted_bid_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # Bids are append-only: any UPDATE or DELETE is refused by the database.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION prevent_bid_mutation()
        RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'Bids are immutable (append-only).';
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        DROP TRIGGER IF EXISTS trg_prevent_bid_mutation ON bids;
        CREATE TRIGGER trg_prevent_bid_mutation
        BEFORE UPDATE OR DELETE ON bids
        FOR EACH ROW
        EXECUTE FUNCTION prevent_bid_mutation();
        """
    )


def downgrade():
    op.execute("DROP TRIGGER IF EXISTS trg_prevent_bid_mutation ON bids;")
    op.execute("DROP FUNCTION IF EXISTS prevent_bid_mutation();")

    op.drop_constraint("fk_properties_accepted_bid", "properties", type_="foreignkey")

    op.drop_index("ix_bids_tenant_buyer", table_name="bids")
    op.drop_index("ix_bids_property_created", table_name="bids")
    op.drop_index("ix_bids_property_amount", table_name="bids")
    op.drop_table("bids")

    op.drop_index("ix_properties_tenant_status", table_name="properties")
    op.drop_table("properties")
