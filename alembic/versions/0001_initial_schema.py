"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _identity_id() -> sa.Column:
    return sa.Column(
        "id",
        sa.BigInteger(),
        sa.Identity(always=False),
        nullable=False,
    )


def _currency() -> sa.Column:
    return sa.Column(
        "currency",
        sa.String(length=3),
        server_default=sa.text("'XOF'"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "photographers",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("commission_bps", sa.Integer(), nullable=False),
        sa.Column(
            "total_sales", sa.BigInteger(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column(
            "total_revenue",
            sa.BigInteger(),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column(
            "is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column(
            "last_ledger_activity_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("ledger_version", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.CheckConstraint("id LIKE 'pht_%'", name="photographer_id_format"),
        sa.CheckConstraint(
            "commission_bps >= 0 AND commission_bps <= 10000",
            name="valid_commission_bps",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("buyer_id", sa.String(length=50), nullable=False),
        _currency(),
        sa.Column("subtotal", sa.BigInteger(), nullable=False),
        sa.Column("tax", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "discount", sa.BigInteger(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("total", sa.BigInteger(), nullable=False),
        sa.Column(
            "payment_status",
            sa.String(length=50),
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        sa.Column("payment_reference", sa.String(length=100), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.CheckConstraint("id LIKE 'ord_%'", name="order_id_format"),
        sa.CheckConstraint("subtotal > 0", name="positive_subtotal"),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed', 'refunded')",
            name="valid_payment_status",
        ),
        sa.CheckConstraint(
            "(payment_status IN ('completed', 'refunded') AND completed_at IS NOT NULL)"
            " OR (payment_status IN ('pending', 'failed') AND completed_at IS NULL)",
            name="completed_at_consistency",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_orders_payment_status", "orders", ["payment_status"])

    op.create_table(
        "withdrawals",
        _identity_id(),
        sa.Column("photographer_id", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        _currency(),
        sa.Column(
            "status",
            sa.String(length=50),
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        sa.Column("payment_method", sa.String(length=50), nullable=False),
        sa.Column(
            "payment_details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("transaction_reference", sa.String(length=255), nullable=True),
        sa.Column("processed_by", sa.String(length=50), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.CheckConstraint("amount > 0", name="positive_withdrawal_amount"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'completed', 'cancelled')",
            name="valid_withdrawal_status",
        ),
        sa.CheckConstraint(
            "payment_method IN ('mobile_money', 'bank_transfer')",
            name="valid_payment_method",
        ),
        sa.CheckConstraint(
            "(status = 'completed' AND completed_at IS NOT NULL"
            " AND transaction_reference IS NOT NULL)"
            " OR (status != 'completed' AND completed_at IS NULL)",
            name="completed_at_consistency",
        ),
        sa.CheckConstraint(
            "status != 'rejected' OR rejection_reason IS NOT NULL",
            name="rejection_reason_required",
        ),
        sa.ForeignKeyConstraint(
            ["photographer_id"], ["photographers.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_withdrawals_in_flight",
        "withdrawals",
        ["photographer_id", "status"],
        postgresql_where=sa.text("status IN ('pending', 'approved')"),
    )
    op.create_index("idx_withdrawals_created_at", "withdrawals", ["created_at"])

    op.create_table(
        "sale_line_items",
        _identity_id(),
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("photo_id", sa.String(length=50), nullable=False),
        sa.Column("photographer_id", sa.String(length=50), nullable=False),
        sa.Column("license_type", sa.String(length=20), nullable=False),
        _currency(),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("photographer_amount", sa.BigInteger(), nullable=True),
        sa.Column("platform_commission", sa.BigInteger(), nullable=True),
        sa.Column("commission_bps", sa.Integer(), nullable=True),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payout_withdrawal_id", sa.BigInteger(), nullable=True),
        _created_at(),
        sa.CheckConstraint("price > 0", name="positive_price"),
        sa.CheckConstraint(
            "license_type IN ('standard', 'extended')", name="valid_license_type"
        ),
        sa.CheckConstraint(
            "(photographer_amount IS NULL AND platform_commission IS NULL)"
            " OR (photographer_amount + platform_commission = price)",
            name="split_sums_to_price",
        ),
        sa.CheckConstraint(
            "(paid AND paid_at IS NOT NULL) OR (NOT paid AND paid_at IS NULL)",
            name="paid_at_consistency",
        ),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["photographer_id"], ["photographers.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["payout_withdrawal_id"], ["withdrawals.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_line_items_photographer",
        "sale_line_items",
        ["photographer_id", "currency"],
    )
    op.create_index("idx_line_items_order", "sale_line_items", ["order_id"])
    op.create_index(
        "idx_line_items_unpaid",
        "sale_line_items",
        ["photographer_id", "available_at"],
        postgresql_where=sa.text("NOT paid"),
    )

    op.create_table(
        "ledger_entries",
        _identity_id(),
        sa.Column("photographer_id", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        _currency(),
        sa.Column("entry_type", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("related_withdrawal_id", sa.BigInteger(), nullable=False),
        _created_at(),
        sa.CheckConstraint(
            "entry_type IN ('withdrawal_reserve', 'withdrawal_release', 'withdrawal_settle')",
            name="valid_entry_type",
        ),
        sa.CheckConstraint(
            "(entry_type = 'withdrawal_reserve' AND amount < 0)"
            " OR (entry_type != 'withdrawal_reserve' AND amount > 0)",
            name="entry_sign_matches_type",
        ),
        sa.ForeignKeyConstraint(
            ["photographer_id"], ["photographers.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["related_withdrawal_id"], ["withdrawals.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_ledger_photographer_currency",
        "ledger_entries",
        ["photographer_id", "currency"],
    )
    op.create_index(
        "idx_ledger_withdrawal", "ledger_entries", ["related_withdrawal_id"]
    )

    op.create_table(
        "payout_allocations",
        _identity_id(),
        sa.Column("withdrawal_id", sa.BigInteger(), nullable=False),
        sa.Column("line_item_id", sa.BigInteger(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        _created_at(),
        sa.CheckConstraint("amount > 0", name="positive_allocation_amount"),
        sa.ForeignKeyConstraint(
            ["withdrawal_id"], ["withdrawals.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["line_item_id"], ["sale_line_items.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "withdrawal_id", "line_item_id", name="uq_allocation_withdrawal_item"
        ),
    )
    op.create_index(
        "idx_allocations_line_item", "payout_allocations", ["line_item_id"]
    )

    op.create_table(
        "payment_notifications",
        _identity_id(),
        sa.Column("notification_id", sa.String(length=100), nullable=False),
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("provider_reference", sa.String(length=100), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.CheckConstraint(
            "status IN ('completed', 'failed', 'refunded')",
            name="valid_notification_status",
        ),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("notification_id"),
    )
    op.create_index(
        "idx_payment_notifications_order", "payment_notifications", ["order_id"]
    )


def downgrade() -> None:
    op.drop_index(
        "idx_payment_notifications_order", table_name="payment_notifications"
    )
    op.drop_table("payment_notifications")

    op.drop_index("idx_allocations_line_item", table_name="payout_allocations")
    op.drop_table("payout_allocations")

    op.drop_index("idx_ledger_withdrawal", table_name="ledger_entries")
    op.drop_index("idx_ledger_photographer_currency", table_name="ledger_entries")
    op.drop_table("ledger_entries")

    op.drop_index("idx_line_items_unpaid", table_name="sale_line_items")
    op.drop_index("idx_line_items_order", table_name="sale_line_items")
    op.drop_index("idx_line_items_photographer", table_name="sale_line_items")
    op.drop_table("sale_line_items")

    op.drop_index("idx_withdrawals_created_at", table_name="withdrawals")
    op.drop_index("idx_withdrawals_in_flight", table_name="withdrawals")
    op.drop_table("withdrawals")

    op.drop_index("idx_orders_payment_status", table_name="orders")
    op.drop_table("orders")

    op.drop_table("photographers")
