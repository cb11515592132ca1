from datetime import datetime
from decimal import Decimal
from enum import Enum
from zoneinfo import ZoneInfo

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from config import get_settings
from database import Base


def local_now() -> datetime:
    # stored timestamps are naive wall-clock time in the configured timezone
    tz = ZoneInfo(get_settings().timezone)
    return datetime.now(tz).replace(tzinfo=None)


AMOUNT = Numeric(14, 2, asdecimal=True)


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=local_now, nullable=False
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(TransactionType), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        Index("ix_transactions_user_created", "user_id", "created_at"),
        Index(
            "ix_transactions_user_category_created",
            "user_id",
            "category",
            "created_at",
        ),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    # 1 = January
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "category", "year", "month", name="uq_budget_user_category_month"
        ),
        Index("ix_budgets_user_month", "user_id", "year", "month"),
        CheckConstraint("amount >= 0", name="ck_budgets_amount_positive"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month_range"),
    )


class SavingGoal(Base, TimestampMixin):
    __tablename__ = "savings_goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    goal_name: Mapped[str] = mapped_column(String(120), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(
        AMOUNT, nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        Index("ix_savings_goals_user", "user_id"),
        CheckConstraint(
            "target_amount >= 0", name="ck_savings_goals_target_positive"
        ),
        CheckConstraint(
            "current_amount >= 0", name="ck_savings_goals_current_positive"
        ),
    )
