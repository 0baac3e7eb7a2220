# app/services/aggregation.py
#
# Aggregation Engine
# Pure functions that turn lists of rows (accounts, transactions, categories,
# saving goals, debts) into the summaries shown on the dashboards.
# No I/O and no mutation of the inputs; None collections count as empty.

import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from config import (
    OTHER_CATEGORY,
    SAVING_DEPOSIT_CATEGORY,
    SAVING_WITHDRAWAL_CATEGORY,
)
from models import (
    INCOME,
    EXPENSE,
    TRANSFER,
    PAYABLE,
    RECEIVABLE,
    UNPAID,
    PARTIALLY_PAID,
    PAID,
)


# ---- Result types ----

@dataclass(frozen=True)
class AccountSummary:
    name: str
    kind: str
    income: float
    expense: float
    balance: float
    last_activity: Optional[date]


@dataclass(frozen=True)
class DashboardSummary:
    total_balance: float
    month_income: float
    month_expense: float
    month_net: float
    month_start: date
    month_end: date


@dataclass(frozen=True)
class SavingGoalProgress:
    goal_id: Optional[int]
    name: str
    target_date: date
    target_amount: float
    saved: float
    remaining: float
    progress: float
    months_remaining: int
    monthly_contribution: float

    @property
    def target_exceeded(self) -> bool:
        return self.remaining < 0


@dataclass(frozen=True)
class SavingSummary:
    total_target: float
    total_saved: float
    total_remaining: float
    overall_progress: float


@dataclass(frozen=True)
class DebtProgress:
    debt_id: Optional[int]
    type: str
    counterparty: str
    amount: float
    amount_paid: float
    remaining: float
    progress: float
    status: str
    due_date: Optional[date]


@dataclass(frozen=True)
class DebtSummary:
    total_payable: float
    total_receivable: float
    payable_paid: float
    receivable_collected: float
    net: float


# ---- Small helpers ----

def _rows(items) -> list:
    return list(items) if items is not None else []


def _amount(value) -> float:
    return float(value or 0.0)


def _percent(part: float, whole: float) -> float:
    """part/whole as a percentage clamped to [0, 100]; 0 when whole is not positive."""
    if whole <= 0:
        return 0.0
    return min(100.0, max(0.0, part / whole * 100.0))


def month_bounds(today: date) -> Tuple[date, date]:
    """First and last calendar day (both inclusive) of the month containing today."""
    start = today.replace(day=1)
    if start.month == 12:
        next_start = date(start.year + 1, 1, 1)
    else:
        next_start = date(start.year, start.month + 1, 1)
    return start, date.fromordinal(next_start.toordinal() - 1)


def whole_months_between(start: date, end: date) -> int:
    """
    Number of complete calendar months from start to end.

    A month only counts once its day-of-month has been reached, so
    Jan 15 -> Jun 14 is 4 months and Jan 31 -> Jun 30 is 4 months.
    Month ends short of the start day still close the month when end
    falls on Feb 28/29 or ends the very next month (Jan 31 -> Feb 28 is 1).
    Returns 0 when end is not after start.
    """
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months < 1:
        return 0
    if end.day < start.day:
        month_end = end.day == calendar.monthrange(end.year, end.month)[1]
        late_february = end.month == 2 and end.day > 27
        if not (late_february or (months == 1 and month_end)):
            months -= 1
    return months


# ---- Accounts ----

def summarize_accounts(accounts, transactions) -> List[AccountSummary]:
    """
    Per-account income, expense, balance and last activity date.

    Transactions are grouped by account name. Accounts with no transactions
    report zero totals; transactions pointing at an unknown account name are
    left out of every summary.
    """
    accounts = _rows(accounts)
    known = {acc.name for acc in accounts}

    income = defaultdict(float)
    expense = defaultdict(float)
    last_activity = {}

    for tx in _rows(transactions):
        if tx.account not in known:
            continue
        if tx.kind == INCOME:
            income[tx.account] += _amount(tx.amount)
        elif tx.kind == EXPENSE:
            expense[tx.account] += _amount(tx.amount)
        current = last_activity.get(tx.account)
        if current is None or tx.date > current:
            last_activity[tx.account] = tx.date

    return [
        AccountSummary(
            name=acc.name,
            kind=acc.kind,
            income=income[acc.name],
            expense=expense[acc.name],
            balance=income[acc.name] - expense[acc.name],
            last_activity=last_activity.get(acc.name),
        )
        for acc in accounts
    ]


# ---- Dashboard ----

def summarize_dashboard(transactions, today: Optional[date] = None) -> DashboardSummary:
    """
    All-time balance plus income/expense of the current calendar month.

    Transfer legs count towards the balance (they cancel out) but not towards
    the monthly income and expense figures.
    """
    today = today or date.today()
    month_start, month_end = month_bounds(today)

    total_income = total_expense = 0.0
    month_income = month_expense = 0.0

    for tx in _rows(transactions):
        amount = _amount(tx.amount)
        in_month = month_start <= tx.date <= month_end
        counts_for_month = in_month and tx.origin != TRANSFER

        if tx.kind == INCOME:
            total_income += amount
            if counts_for_month:
                month_income += amount
        elif tx.kind == EXPENSE:
            total_expense += amount
            if counts_for_month:
                month_expense += amount

    return DashboardSummary(
        total_balance=total_income - total_expense,
        month_income=month_income,
        month_expense=month_expense,
        month_net=month_income - month_expense,
        month_start=month_start,
        month_end=month_end,
    )


def spending_by_category(transactions, start: date, end: date) -> List[dict]:
    """
    Direct expenses between start and end (inclusive) summed per category,
    largest first. Shape matches the dashboard chart: [{"label", "value"}].
    """
    totals = defaultdict(float)
    for tx in _rows(transactions):
        if tx.kind != EXPENSE or tx.origin == TRANSFER:
            continue
        if start <= tx.date <= end:
            totals[tx.category] += _amount(tx.amount)

    return [
        {"label": label, "value": value}
        for label, value in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


# ---- Saving goals ----

def saved_amount(goal, transactions) -> float:
    """Initial amount plus linked deposits minus linked withdrawals."""
    total = _amount(goal.initial_amount)
    for tx in _rows(transactions):
        if goal.id is None or tx.saving_goal_id != goal.id:
            continue
        if tx.category == SAVING_DEPOSIT_CATEGORY and tx.kind == INCOME:
            total += _amount(tx.amount)
        elif tx.category == SAVING_WITHDRAWAL_CATEGORY and tx.kind == EXPENSE:
            total -= _amount(tx.amount)
    return total


def saving_goal_progress(goal, saved: float, today: Optional[date] = None) -> SavingGoalProgress:
    """
    Remaining amount, progress and the monthly contribution needed to reach goal.

    remaining is not floored: a negative value means the target was exceeded.
    When no whole month is left the whole remaining amount is due now.
    """
    today = today or date.today()
    target = _amount(goal.target_amount)
    saved = _amount(saved)

    remaining = target - saved
    months_remaining = whole_months_between(today, goal.target_date)
    if months_remaining > 0:
        monthly_contribution = remaining / months_remaining
    else:
        monthly_contribution = remaining

    return SavingGoalProgress(
        goal_id=goal.id,
        name=goal.name,
        target_date=goal.target_date,
        target_amount=target,
        saved=saved,
        remaining=remaining,
        progress=_percent(saved, target),
        months_remaining=months_remaining,
        monthly_contribution=monthly_contribution,
    )


def summarize_saving_goals(goals, transactions, today: Optional[date] = None) -> List[SavingGoalProgress]:
    transactions = _rows(transactions)
    return [
        saving_goal_progress(goal, saved_amount(goal, transactions), today=today)
        for goal in _rows(goals)
    ]


def saving_summary(progress_rows: Iterable[SavingGoalProgress]) -> SavingSummary:
    rows = _rows(progress_rows)
    total_target = sum(p.target_amount for p in rows)
    total_saved = sum(p.saved for p in rows)
    return SavingSummary(
        total_target=total_target,
        total_saved=total_saved,
        total_remaining=total_target - total_saved,
        overall_progress=_percent(total_saved, total_target),
    )


# ---- Debts ----

def debt_status(amount_paid, amount) -> str:
    """
    The only source of truth for a debt's status.

    paid once amount_paid >= amount (so 0/0 is paid), partially paid when
    something but not everything was paid, unpaid otherwise.
    """
    amount_paid = _amount(amount_paid)
    amount = _amount(amount)
    if amount_paid >= amount:
        return PAID
    if amount_paid > 0:
        return PARTIALLY_PAID
    return UNPAID


def debt_progress(debt) -> DebtProgress:
    amount = _amount(debt.amount)
    paid = _amount(debt.amount_paid)
    return DebtProgress(
        debt_id=debt.id,
        type=debt.type,
        counterparty=debt.counterparty,
        amount=amount,
        amount_paid=paid,
        remaining=amount - paid,
        progress=_percent(paid, amount),
        status=debt_status(paid, amount),
        due_date=debt.due_date,
    )


def summarize_debts(debts) -> DebtSummary:
    total_payable = total_receivable = 0.0
    payable_paid = receivable_collected = 0.0

    for debt in _rows(debts):
        if debt.type == PAYABLE:
            total_payable += _amount(debt.amount)
            payable_paid += _amount(debt.amount_paid)
        elif debt.type == RECEIVABLE:
            total_receivable += _amount(debt.amount)
            receivable_collected += _amount(debt.amount_paid)

    return DebtSummary(
        total_payable=total_payable,
        total_receivable=total_receivable,
        payable_paid=payable_paid,
        receivable_collected=receivable_collected,
        net=total_receivable - total_payable,
    )


def debt_category_breakdown(debts, categories) -> List[dict]:
    """
    Outstanding amount of payable debts per category name.

    Debts whose category id matches no category go to the "Other" bucket.
    Buckets keep first-seen order.
    """
    names = {cat.id: cat.name for cat in _rows(categories)}
    totals = {}
    for debt in _rows(debts):
        if debt.type != PAYABLE:
            continue
        label = names.get(debt.category_id, OTHER_CATEGORY)
        outstanding = _amount(debt.amount) - _amount(debt.amount_paid)
        totals[label] = totals.get(label, 0.0) + outstanding

    return [{"label": label, "value": value} for label, value in totals.items()]
