from alembic import op
import sqlalchemy as sa


revision = "0003_past_orders"
down_revision = "0002_orders_payments"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Archive tables mirror orders / order_items / payments plus migrated_at.
    # They reference each other but never the live tables.
    op.create_table(
        "past_orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column("register_session_id", sa.String(36), nullable=False),
        sa.Column("order_type", sa.String(20), nullable=False, server_default="dine_in"),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("delivery_address", sa.String(500), nullable=True),
        sa.Column("delivery_charge", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("kot_print_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("completed_by", sa.String(36), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("migrated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["register_session_id"], ["register_sessions.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
    )
    op.create_index("ix_past_orders_order_number", "past_orders", ["order_number"], unique=True)
    op.create_index("ix_past_orders_register_session_id", "past_orders", ["register_session_id"])
    op.create_index("ix_past_orders_status", "past_orders", ["status"])
    op.create_index("ix_past_orders_created_at", "past_orders", ["created_at"])

    op.create_table(
        "past_order_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_id", sa.String(36), nullable=False, index=True),
        sa.Column("item_type", sa.String(20), nullable=False, server_default="menu_item"),
        sa.Column("menu_item_id", sa.String(36), nullable=True),
        sa.Column("deal_id", sa.String(36), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("selected_variants", sa.JSON(), nullable=True),
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("migrated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["past_orders.id"]),
    )

    op.create_table(
        "past_payments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_id", sa.String(36), nullable=False, index=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=False, index=True),
        sa.Column("received_by", sa.String(36), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("migrated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["past_orders.id"]),
        sa.ForeignKeyConstraint(["received_by"], ["users.id"]),
    )


def downgrade() -> None:
    op.drop_table("past_payments")
    op.drop_table("past_order_items")
    op.drop_index("ix_past_orders_created_at", table_name="past_orders")
    op.drop_index("ix_past_orders_status", table_name="past_orders")
    op.drop_index("ix_past_orders_register_session_id", table_name="past_orders")
    op.drop_index("ix_past_orders_order_number", table_name="past_orders")
    op.drop_table("past_orders")
