"""Create users, financial accounts, savings boxes, savings transactions, goals and transactions"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_savings_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not inspector.has_table("financial_accounts"):
        op.create_table(
            "financial_accounts",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("type", sa.String(), nullable=False),
            sa.Column("balance", sa.BigInteger(), nullable=False, server_default="0"),
            sa.Column("currency", sa.String(), nullable=False, server_default="BRL"),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_financial_accounts_user_id", "financial_accounts", ["user_id"], unique=False)

    if not inspector.has_table("savings_boxes"):
        op.create_table(
            "savings_boxes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("color", sa.String(), nullable=False, server_default="#3B82F6"),
            sa.Column("icon", sa.String(), nullable=False, server_default="piggy-bank"),
            sa.Column("current_amount", sa.BigInteger(), nullable=False, server_default="0"),
            sa.Column("target_amount", sa.BigInteger(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint("current_amount >= 0", name="ck_savings_boxes_non_negative"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_savings_boxes_user_id", "savings_boxes", ["user_id"], unique=False)
        op.create_index("ix_savings_boxes_user_active", "savings_boxes", ["user_id", "is_active"], unique=False)

    if not inspector.has_table("savings_transactions"):
        op.create_table(
            "savings_transactions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("savings_box_id", sa.Integer(), nullable=False),
            sa.Column("target_savings_box_id", sa.Integer(), nullable=True),
            sa.Column("source_account_id", sa.Integer(), nullable=True),
            sa.Column("amount", sa.BigInteger(), nullable=False),
            sa.Column("type", sa.String(length=16), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.CheckConstraint("amount > 0", name="ck_savings_transactions_positive"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
            sa.ForeignKeyConstraint(["savings_box_id"], ["savings_boxes.id"], ),
            sa.ForeignKeyConstraint(["target_savings_box_id"], ["savings_boxes.id"], ),
            sa.ForeignKeyConstraint(["source_account_id"], ["financial_accounts.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_savings_transactions_user_id", "savings_transactions", ["user_id"], unique=False)
        op.create_index("ix_savings_transactions_savings_box_id", "savings_transactions", ["savings_box_id"], unique=False)
        op.create_index("ix_savings_transactions_target", "savings_transactions", ["target_savings_box_id"], unique=False)
        op.create_index(
            "ix_savings_transactions_user_created",
            "savings_transactions",
            ["user_id", "created_at"],
            unique=False,
        )

    if not inspector.has_table("financial_goals"):
        op.create_table(
            "financial_goals",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("target_amount", sa.BigInteger(), nullable=False),
            sa.Column("current_amount", sa.BigInteger(), nullable=False, server_default="0"),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("target_date", sa.Date(), nullable=False),
            sa.Column("category_id", sa.Integer(), nullable=True),
            sa.Column("account_id", sa.Integer(), nullable=False),
            sa.Column("savings_box_id", sa.Integer(), nullable=True),
            sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
            sa.ForeignKeyConstraint(["account_id"], ["financial_accounts.id"], ),
            sa.ForeignKeyConstraint(["savings_box_id"], ["savings_boxes.id"], ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_financial_goals_user_id", "financial_goals", ["user_id"], unique=False)
        op.create_index("ix_financial_goals_savings_box_id", "financial_goals", ["savings_box_id"], unique=False)

    if not inspector.has_table("transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("account_id", sa.Integer(), nullable=False),
            sa.Column("goal_id", sa.Integer(), nullable=True),
            sa.Column("amount", sa.BigInteger(), nullable=False),
            sa.Column("transaction_type", sa.String(), nullable=False),
            sa.Column("category", sa.String(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("transaction_date", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
            sa.ForeignKeyConstraint(["account_id"], ["financial_accounts.id"], ),
            sa.ForeignKeyConstraint(["goal_id"], ["financial_goals.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_transactions_user_id", "transactions", ["user_id"], unique=False)
        op.create_index("ix_transactions_account_date", "transactions", ["account_id", "transaction_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_transactions_account_date", table_name="transactions")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_financial_goals_savings_box_id", table_name="financial_goals")
    op.drop_index("ix_financial_goals_user_id", table_name="financial_goals")
    op.drop_table("financial_goals")
    op.drop_index("ix_savings_transactions_user_created", table_name="savings_transactions")
    op.drop_index("ix_savings_transactions_target", table_name="savings_transactions")
    op.drop_index("ix_savings_transactions_savings_box_id", table_name="savings_transactions")
    op.drop_index("ix_savings_transactions_user_id", table_name="savings_transactions")
    op.drop_table("savings_transactions")
    op.drop_index("ix_savings_boxes_user_active", table_name="savings_boxes")
    op.drop_index("ix_savings_boxes_user_id", table_name="savings_boxes")
    op.drop_table("savings_boxes")
    op.drop_index("ix_financial_accounts_user_id", table_name="financial_accounts")
    op.drop_table("financial_accounts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
