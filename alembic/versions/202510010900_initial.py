"""initial schema: transactions, budgets, savings goals

Revision ID: 202510010900
Revises:
Create Date: 2025-10-01 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202510010900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "type", sa.Enum("income", "expense", name="transactiontype"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )
    op.create_index(
        "ix_transactions_user_created", "transactions", ["user_id", "created_at"]
    )
    op.create_index(
        "ix_transactions_user_category_created",
        "transactions",
        ["user_id", "category", "created_at"],
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "user_id", "category", "year", "month", name="uq_budget_user_category_month"
        ),
        sa.CheckConstraint("amount >= 0", name="ck_budgets_amount_positive"),
        sa.CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month_range"),
    )
    op.create_index("ix_budgets_user_month", "budgets", ["user_id", "year", "month"])

    op.create_table(
        "savings_goals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("goal_name", sa.String(length=120), nullable=False),
        sa.Column("target_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column(
            "current_amount", sa.Numeric(14, 2), nullable=False, server_default="0"
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "target_amount >= 0", name="ck_savings_goals_target_positive"
        ),
        sa.CheckConstraint(
            "current_amount >= 0", name="ck_savings_goals_current_positive"
        ),
    )
    op.create_index("ix_savings_goals_user", "savings_goals", ["user_id"])


def downgrade():
    op.drop_index("ix_savings_goals_user", table_name="savings_goals")
    op.drop_table("savings_goals")
    op.drop_index("ix_budgets_user_month", table_name="budgets")
    op.drop_table("budgets")
    op.drop_index("ix_transactions_user_category_created", table_name="transactions")
    op.drop_index("ix_transactions_user_created", table_name="transactions")
    op.drop_table("transactions")
