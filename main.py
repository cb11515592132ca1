import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from assistant import AssistantError, FinanceAssistant, Turn
from config import get_settings
from database import SessionLocal
from periods import MonthConvention, Period, ReportPeriod, resolve_period, to_one_based
from reconciliation import WithinBudget, WouldExceed, goal_progress
from schemas import (
    AssistantIn,
    BudgetCheckIn,
    BudgetIn,
    BudgetOut,
    ContributionIn,
    SavingGoalIn,
    SavingGoalOut,
    TransactionIn,
    TransactionOut,
    TransactionUpdate,
)
from services import (
    BudgetService,
    DashboardService,
    NotFoundError,
    ReportService,
    SavingGoalService,
    TransactionService,
)
from models import TransactionType, local_now


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="My Wallet")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def local_today() -> date:
    return local_now().date()


def period_from_request(request: Request) -> Period:
    period_slug = request.query_params.get("period")
    start = request.query_params.get("start")
    end = request.query_params.get("end")
    try:
        return resolve_period(period_slug, start, end, today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def month_from_query(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    """Resolve ``?year=&month=`` (1 = January), defaulting each to the current one."""
    today = local_today()
    year = today.year if year is None else year
    month = today.month if month is None else month
    if not 1970 <= year <= 3000:
        raise HTTPException(status_code=400, detail=f"Year {year} out of range")
    try:
        month = to_one_based(month, MonthConvention.one_based)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return year, month


def decision_payload(decision) -> dict[str, object]:
    if isinstance(decision, WouldExceed):
        return {
            "decision": "would_exceed",
            "budget_amount": decision.budget_amount,
            "already_spent": decision.already_spent,
            "over_by": decision.over_by,
        }
    if isinstance(decision, WithinBudget):
        return {
            "decision": "within_budget",
            "budget_amount": decision.budget_amount,
            "already_spent": decision.already_spent,
        }
    return {"decision": "no_budget"}


def goal_payload(goal) -> dict[str, object]:
    data = SavingGoalOut.model_validate(goal).model_dump()
    data["progress"] = goal_progress(goal)
    return data


@app.get("/api/dashboard")
def api_dashboard(
    db: Session = Depends(get_db), user_id: str = Depends(get_user_id)
):
    overview = DashboardService(db, user_id).overview(now=local_now())
    return {
        "income": overview.totals.total_income,
        "expense": overview.totals.total_expense,
        "balance": overview.totals.balance,
        "transactions": [
            TransactionOut.model_validate(txn).model_dump() for txn in overview.recent
        ],
        "weekly": [
            {"label": bucket.day_label, "total": bucket.total}
            for bucket in overview.weekly
        ],
    }


@app.get("/api/transactions")
def api_transactions(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    service = TransactionService(db, user_id)
    if "period" in request.query_params:
        period = period_from_request(request)
        items = service.list_for_period(period)
        return {
            "items": [TransactionOut.model_validate(t).model_dump() for t in items],
            "period": {
                "slug": period.slug,
                "start": period.start.isoformat(),
                "end": period.end.isoformat(),
            },
        }

    page_size = get_settings().page_size
    try:
        page = max(int(request.query_params.get("page", "0")), 0)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid page") from exc
    items = service.list_page(page, page_size)
    return {
        "items": [TransactionOut.model_validate(t).model_dump() for t in items],
        "page": page,
        "page_size": page_size,
        "has_more": len(items) == page_size,
    }


@app.post("/api/transactions/check")
def api_check_budget(
    payload: BudgetCheckIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    decision = BudgetService(db, user_id).check(
        payload.category, payload.amount, when=local_today()
    )
    return decision_payload(decision)


@app.post("/api/transactions", status_code=201)
def api_create_transaction(
    payload: TransactionIn,
    confirm: bool = False,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    if payload.created_at is None:
        payload = payload.model_copy(update={"created_at": local_now()})
    if payload.type == TransactionType.expense and not confirm:
        # checked against the month the expense lands in
        decision = BudgetService(db, user_id).check(
            payload.category, payload.amount, when=payload.created_at
        )
        if isinstance(decision, WouldExceed):
            raise HTTPException(
                status_code=409, detail=jsonable_encoder(decision_payload(decision))
            )
    txn = TransactionService(db, user_id).create(payload)
    return TransactionOut.model_validate(txn).model_dump()


@app.patch("/api/transactions/{transaction_id}")
def api_update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        txn = TransactionService(db, user_id).update(transaction_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionOut.model_validate(txn).model_dump()


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def api_delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        TransactionService(db, user_id).delete(transaction_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/summary/daily")
def api_daily_summary(
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    year, month = month_from_query(year, month)
    days = TransactionService(db, user_id).daily_summary(
        year, month, convention=MonthConvention.one_based
    )
    return {
        "year": year,
        "month": month,
        "days": [
            {"day": row.day, "income": row.income, "expense": row.expense}
            for row in days
        ],
    }


@app.get("/api/budgets")
def api_budgets(
    year: Optional[int] = None,
    month: Optional[int] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    year, month = month_from_query(year, month)
    service = BudgetService(db, user_id)
    budgets = service.list_for_month(year, month)
    progress = service.progress_for_month(year, month)
    return {
        "year": year,
        "month": month,
        "items": [
            {
                **BudgetOut.model_validate(budget).model_dump(),
                "spent": row.spent,
                "remaining": row.remaining,
                "percent": row.percent,
                "status": row.status,
            }
            for budget, row in zip(budgets, progress)
        ],
    }


@app.put("/api/budgets")
def api_upsert_budget(
    payload: BudgetIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    budget = BudgetService(db, user_id).upsert(payload)
    return BudgetOut.model_validate(budget).model_dump()


@app.post("/api/budgets/defaults", status_code=201)
def api_seed_budgets(
    db: Session = Depends(get_db), user_id: str = Depends(get_user_id)
):
    today = local_today()
    created = BudgetService(db, user_id).seed_defaults(today.year, today.month)
    return {"items": [BudgetOut.model_validate(b).model_dump() for b in created]}


@app.delete("/api/budgets/{budget_id}", status_code=204)
def api_delete_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        BudgetService(db, user_id).delete(budget_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/goals")
def api_goals(db: Session = Depends(get_db), user_id: str = Depends(get_user_id)):
    goals = SavingGoalService(db, user_id).list_all()
    return {"items": [goal_payload(goal) for goal in goals]}


@app.post("/api/goals", status_code=201)
def api_create_goal(
    payload: SavingGoalIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    goal = SavingGoalService(db, user_id).create(payload)
    return goal_payload(goal)


@app.put("/api/goals/{goal_id}")
def api_update_goal(
    goal_id: int,
    payload: SavingGoalIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        goal = SavingGoalService(db, user_id).update(goal_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return goal_payload(goal)


@app.delete("/api/goals/{goal_id}", status_code=204)
def api_delete_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        SavingGoalService(db, user_id).delete(goal_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/api/goals/{goal_id}/contributions")
def api_contribute(
    goal_id: int,
    payload: ContributionIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    try:
        goal = SavingGoalService(db, user_id).contribute(goal_id, payload.amount)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return goal_payload(goal)


@app.get("/api/reports")
def api_reports(
    period: ReportPeriod = ReportPeriod.monthly,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
):
    report = ReportService(db, user_id).build(period, today=local_today())
    return {
        "period": period.value,
        "total_income": report.total_income,
        "total_expense": report.total_expense,
        "net": report.net,
        "trend": [
            {
                "year": row.year,
                "month": row.month + 1,
                "label": row.label,
                "income": row.income,
                "expense": row.expense,
            }
            for row in report.trend
        ],
        "category_breakdown": [
            {
                "category": entry.category,
                "amount": entry.amount,
                "percentage": entry.percentage,
                "color": entry.color,
            }
            for entry in report.category_breakdown
        ],
    }


@app.post("/api/assistant")
def api_assistant(payload: AssistantIn, user_id: str = Depends(get_user_id)):
    history = [Turn(sender=m.sender, text=m.text) for m in payload.history]
    try:
        reply = FinanceAssistant().ask(history, payload.message)
    except AssistantError as exc:
        logger.warning(f"assistant_unavailable: user={user_id} error={exc}")
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"reply": reply}
