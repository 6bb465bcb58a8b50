from alembic import op
import sqlalchemy as sa


revision = "0001_users_register_sessions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="cashier"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "register_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("opened_by", sa.String(36), nullable=False),
        sa.Column("closed_by", sa.String(36), nullable=True),
        sa.Column("opened_at", sa.DateTime(), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("opening_cash", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("closing_cash", sa.Numeric(10, 2), nullable=True),
        sa.Column("expected_cash", sa.Numeric(10, 2), nullable=True),
        sa.Column("cash_difference", sa.Numeric(10, 2), nullable=True),
        sa.Column("total_sales", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["opened_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["closed_by"], ["users.id"]),
        sa.CheckConstraint("status IN ('open', 'closed')", name="ck_register_sessions_status"),
    )
    op.create_index("ix_register_sessions_opened_by", "register_sessions", ["opened_by"])
    # A single open drawer: unique over the open rows only
    op.create_index(
        "uq_register_sessions_single_open",
        "register_sessions",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
        sqlite_where=sa.text("status = 'open'"),
    )


def downgrade() -> None:
    op.drop_index("uq_register_sessions_single_open", table_name="register_sessions")
    op.drop_index("ix_register_sessions_opened_by", table_name="register_sessions")
    op.drop_table("register_sessions")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
