from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from aggregation import (
    DailySummary,
    DayBucket,
    Totals,
    daily_totals,
    summarize,
    weekly_buckets,
)
from models import Budget, SavingGoal, Transaction, TransactionType, local_now
from periods import MonthConvention, Period, ReportPeriod, last_n_months, month_range
from reconciliation import (
    BudgetProgress,
    Decision,
    NoBudgetDefined,
    WouldExceed,
    budget_progress,
    check_budget,
)
from reports import Report, build_report
from schemas import BudgetIn, SavingGoalIn, TransactionIn, TransactionUpdate


logger = logging.getLogger(__name__)

DEFAULT_BUDGET_CATEGORIES = ("Makanan", "Transportasi", "Hiburan", "Tagihan")


class NotFoundError(ValueError):
    pass


class TransactionService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def list_page(self, page: int, page_size: int) -> list[Transaction]:
        if page < 0:
            raise ValueError("Page index must not be negative")
        if page_size < 1:
            raise ValueError("Page size must be positive")
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == self.user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(page * page_size)
            .limit(page_size)
        )
        return list(self.session.scalars(stmt).all())

    def iter_all(self, page_size: int) -> Iterator[Transaction]:
        page = 0
        while True:
            rows = self.list_page(page, page_size)
            yield from rows
            if len(rows) < page_size:
                return
            page += 1

    def list_between(self, start: datetime, end: datetime) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(
                Transaction.user_id == self.user_id,
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .order_by(Transaction.created_at.asc(), Transaction.id.asc())
        )
        return list(self.session.scalars(stmt).all())

    def list_for_period(self, period: Period) -> list[Transaction]:
        return self.list_between(period.start, period.end)

    def list_for_month(
        self,
        year: int,
        month: int,
        *,
        convention: MonthConvention = MonthConvention.zero_based,
    ) -> list[Transaction]:
        start, end = month_range(year, month, convention=convention)
        return self.list_between(start, end)

    def spent_for_category(
        self,
        category: str,
        year: int,
        month: int,
        *,
        convention: MonthConvention = MonthConvention.zero_based,
    ) -> Decimal:
        start, end = month_range(year, month, convention=convention)
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == self.user_id,
            Transaction.category == category,
            Transaction.type == TransactionType.expense,
            Transaction.created_at >= start,
            Transaction.created_at < end,
        )
        return Decimal(self.session.execute(stmt).scalar_one() or 0)

    def daily_summary(
        self,
        year: int,
        month: int,
        *,
        convention: MonthConvention = MonthConvention.zero_based,
    ) -> list[DailySummary]:
        transactions = self.list_for_month(year, month, convention=convention)
        return daily_totals(transactions, year, month, convention=convention)

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.scalar(
            select(Transaction).where(
                Transaction.user_id == self.user_id, Transaction.id == transaction_id
            )
        )
        if not txn:
            raise NotFoundError("Transaction not found")
        return txn

    def create(self, data: TransactionIn) -> Transaction:
        txn = Transaction(
            user_id=self.user_id,
            type=data.type,
            amount=data.amount,
            category=data.category,
            created_at=data.created_at or local_now(),
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"transaction_created: user={self.user_id} id={txn.id} type={txn.type.value}"
        )
        return txn

    def update(self, transaction_id: int, data: TransactionUpdate) -> Transaction:
        txn = self.get(transaction_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                raise ValueError(f"Field {field} cannot be cleared")
            setattr(txn, field, value)
        self.session.commit()
        self.session.refresh(txn)
        return txn

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()
        logger.info(f"transaction_deleted: user={self.user_id} id={transaction_id}")


class BudgetService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def list_for_month(self, year: int, month: int) -> list[Budget]:
        stmt = (
            select(Budget)
            .where(
                Budget.user_id == self.user_id,
                Budget.year == year,
                Budget.month == month,
            )
            .order_by(Budget.id.asc())
        )
        return list(self.session.scalars(stmt).all())

    def get_for_category(
        self, category: str, year: int, month: int
    ) -> Optional[Budget]:
        return self.session.scalar(
            select(Budget).where(
                Budget.user_id == self.user_id,
                Budget.category == category,
                Budget.year == year,
                Budget.month == month,
            )
        )

    def upsert(self, data: BudgetIn) -> Budget:
        existing = self.get_for_category(data.category, data.year, data.month)
        if existing:
            existing.amount = data.amount
            self.session.commit()
            self.session.refresh(existing)
            return existing

        budget = Budget(
            user_id=self.user_id,
            category=data.category,
            amount=data.amount,
            year=data.year,
            month=data.month,
        )
        self.session.add(budget)
        self.session.commit()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self.session.get(Budget, budget_id)
        if not budget or budget.user_id != self.user_id:
            raise NotFoundError("Budget not found")
        self.session.delete(budget)
        self.session.commit()

    def seed_defaults(self, year: int, month: int) -> list[Budget]:
        created: list[Budget] = []
        for category in DEFAULT_BUDGET_CATEGORIES:
            if self.get_for_category(category, year, month):
                continue
            budget = Budget(
                user_id=self.user_id,
                category=category,
                amount=Decimal("0"),
                year=year,
                month=month,
            )
            self.session.add(budget)
            created.append(budget)
        self.session.commit()
        logger.info(
            f"budgets_seeded: user={self.user_id} year={year} month={month} count={len(created)}"
        )
        return created

    def check(
        self, category: str, amount: Decimal, *, when: Optional[date] = None
    ) -> Decision:
        when = when or local_now().date()
        transactions = TransactionService(self.session, self.user_id)
        decision = check_budget(
            self.user_id,
            category,
            when.year,
            when.month,
            amount,
            budget_lookup=lambda _user, cat, year, month: self.get_for_category(
                cat, year, month
            ),
            spent_lookup=lambda _user, cat, year, month: transactions.spent_for_category(
                cat, year, month, convention=MonthConvention.zero_based
            ),
        )
        if isinstance(decision, WouldExceed):
            logger.info(
                f"budget_check: user={self.user_id} category={category} decision=would_exceed over_by={decision.over_by}"
            )
        elif not isinstance(decision, NoBudgetDefined):
            logger.debug(
                f"budget_check: user={self.user_id} category={category} decision=within_budget"
            )
        return decision

    def progress_for_month(self, year: int, month: int) -> list[BudgetProgress]:
        budgets = self.list_for_month(year, month)
        transactions = TransactionService(self.session, self.user_id).list_for_month(
            year, month, convention=MonthConvention.one_based
        )
        return budget_progress(budgets, transactions)


class SavingGoalService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def list_all(self) -> list[SavingGoal]:
        stmt = (
            select(SavingGoal)
            .where(SavingGoal.user_id == self.user_id)
            .order_by(SavingGoal.created_at.asc(), SavingGoal.id.asc())
        )
        return list(self.session.scalars(stmt).all())

    def get(self, goal_id: int) -> SavingGoal:
        goal = self.session.get(SavingGoal, goal_id)
        if not goal or goal.user_id != self.user_id:
            raise NotFoundError("Saving goal not found")
        return goal

    def create(self, data: SavingGoalIn) -> SavingGoal:
        goal = SavingGoal(
            user_id=self.user_id,
            goal_name=data.goal_name,
            target_amount=data.target_amount,
            current_amount=Decimal("0"),
        )
        self.session.add(goal)
        self.session.commit()
        self.session.refresh(goal)
        return goal

    def update(self, goal_id: int, data: SavingGoalIn) -> SavingGoal:
        goal = self.get(goal_id)
        goal.goal_name = data.goal_name
        goal.target_amount = data.target_amount
        self.session.commit()
        self.session.refresh(goal)
        return goal

    def delete(self, goal_id: int) -> None:
        self.get(goal_id)
        self.session.execute(
            delete(SavingGoal).where(
                SavingGoal.user_id == self.user_id, SavingGoal.id == goal_id
            )
        )
        self.session.commit()

    def contribute(self, goal_id: int, amount: Decimal) -> SavingGoal:
        if amount <= 0:
            raise ValueError("Contribution must be positive")
        result = self.session.execute(
            update(SavingGoal)
            .where(SavingGoal.user_id == self.user_id, SavingGoal.id == goal_id)
            .values(current_amount=SavingGoal.current_amount + amount)
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise NotFoundError("Saving goal not found")
        self.session.commit()
        goal = self.get(goal_id)
        self.session.refresh(goal)
        logger.info(
            f"goal_contribution: user={self.user_id} goal={goal_id} amount={amount}"
        )
        return goal


@dataclass(frozen=True)
class DashboardOverview:
    totals: Totals
    recent: list[Transaction]
    weekly: list[DayBucket]


class DashboardService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def overview(self, *, now: Optional[datetime] = None) -> DashboardOverview:
        now = now or local_now()
        txn_service = TransactionService(self.session, self.user_id)
        transactions = txn_service.list_for_month(now.year, now.month - 1)
        last_week = txn_service.list_between(
            now - timedelta(days=7), now + timedelta(microseconds=1)
        )
        recent = sorted(
            transactions, key=lambda txn: (txn.created_at, txn.id), reverse=True
        )
        return DashboardOverview(
            totals=summarize(transactions),
            recent=recent,
            weekly=weekly_buckets(last_week, now),
        )


class ReportService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def build(self, period: ReportPeriod, *, today: Optional[date] = None) -> Report:
        transactions = TransactionService(self.session, self.user_id)
        monthly_sets = []
        for year, month in last_n_months(period.months, today=today):
            monthly_sets.append(
                ((year, month), transactions.list_for_month(year, month))
            )
        report = build_report(monthly_sets)
        logger.info(
            f"report_built: user={self.user_id} period={period.value} months={len(monthly_sets)} categories={len(report.category_breakdown)}"
        )
        return report
