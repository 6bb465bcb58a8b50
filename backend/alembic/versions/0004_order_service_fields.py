from alembic import op
import sqlalchemy as sa


revision = "0004_order_service_fields"
down_revision = "0003_past_orders"
branch_labels = None
depends_on = None


ORDER_TABLES = ("orders", "past_orders")
ITEM_TABLES = ("order_items", "past_order_items")


def _order_columns():
    return [
        sa.Column("table_id", sa.String(36), nullable=True),
        sa.Column("waiter_id", sa.String(36), nullable=True),
        sa.Column("customer_id", sa.String(36), nullable=True),
        sa.Column("rider_id", sa.String(36), nullable=True),
        sa.Column("discount_type", sa.String(20), nullable=True),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("discount_reference", sa.String(255), nullable=True),
        sa.Column("delivery_status", sa.String(20), nullable=True),
        sa.Column("last_kot_printed_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # Live and archive tables must stay column-for-column identical
    for table in ORDER_TABLES:
        with op.batch_alter_table(table) as batch:
            for column in _order_columns():
                batch.add_column(column)
        op.create_index(f"ix_{table}_customer_id", table, ["customer_id"])

    for table in ITEM_TABLES:
        with op.batch_alter_table(table) as batch:
            batch.add_column(sa.Column("deal_breakdown", sa.JSON(), nullable=True))
            batch.add_column(sa.Column("last_printed_at", sa.DateTime(), nullable=True))


def downgrade() -> None:
    for table in ITEM_TABLES:
        with op.batch_alter_table(table) as batch:
            batch.drop_column("last_printed_at")
            batch.drop_column("deal_breakdown")

    for table in ORDER_TABLES:
        op.drop_index(f"ix_{table}_customer_id", table_name=table)
        with op.batch_alter_table(table) as batch:
            for column in reversed(_order_columns()):
                batch.drop_column(column.name)
