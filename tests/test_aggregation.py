from datetime import date

from models import Account, Category, Transaction, SavingGoal, Debt
from app.services.aggregation import (
    summarize_accounts,
    summarize_dashboard,
    spending_by_category,
    saved_amount,
    saving_goal_progress,
    summarize_saving_goals,
    saving_summary,
    debt_status,
    debt_progress,
    summarize_debts,
    debt_category_breakdown,
    month_bounds,
    whole_months_between,
)

TODAY = date(2026, 1, 15)


def tx(kind, amount, account="BCA", when=TODAY, category="Food", origin="direct", goal=None):
    return Transaction(
        kind=kind,
        amount=amount,
        account=account,
        date=when,
        category=category,
        origin=origin,
        saving_goal_id=goal,
    )


# ---- accounts ----

def test_account_summary_scenario():
    accounts = [Account(id=1, name="BCA", kind="bank")]
    transactions = [tx("income", 100000), tx("expense", 30000)]

    [summary] = summarize_accounts(accounts, transactions)

    assert summary.name == "BCA"
    assert summary.income == 100000
    assert summary.expense == 30000
    assert summary.balance == 70000
    assert summary.last_activity == TODAY


def test_account_without_transactions_reports_zero():
    accounts = [Account(name="BCA", kind="bank"), Account(name="Cash", kind="cash")]
    summaries = summarize_accounts(accounts, [tx("income", 500, account="BCA")])

    cash = summaries[1]
    assert cash.name == "Cash"
    assert (cash.income, cash.expense, cash.balance) == (0, 0, 0)
    assert cash.last_activity is None


def test_unknown_account_is_excluded():
    accounts = [Account(name="BCA", kind="bank")]
    summaries = summarize_accounts(accounts, [tx("income", 100, account="Ghost")])

    assert len(summaries) == 1
    assert summaries[0].balance == 0


def test_last_activity_is_latest_date():
    accounts = [Account(name="BCA", kind="bank")]
    transactions = [
        tx("income", 1, when=date(2025, 12, 1)),
        tx("expense", 1, when=date(2026, 1, 3)),
        tx("income", 1, when=date(2025, 11, 30)),
    ]
    assert summarize_accounts(accounts, transactions)[0].last_activity == date(2026, 1, 3)


def test_account_balances_add_up_to_overall_net():
    accounts = [
        Account(name="BCA", kind="bank"),
        Account(name="GoPay", kind="digital_wallet"),
        Account(name="Cash", kind="cash"),
    ]
    transactions = [
        tx("income", 1000000, account="BCA"),
        tx("expense", 250000, account="BCA"),
        tx("expense", 200000, account="BCA", origin="transfer", category="Transfer Out"),
        tx("income", 200000, account="GoPay", origin="transfer", category="Transfer In"),
        tx("expense", 45000, account="GoPay"),
        tx("income", 10000, account="Cash"),
    ]

    per_account = sum(s.balance for s in summarize_accounts(accounts, transactions))
    income = sum(t.amount for t in transactions if t.kind == "income")
    expense = sum(t.amount for t in transactions if t.kind == "expense")

    assert per_account == income - expense


def test_none_collections_are_empty():
    assert summarize_accounts(None, None) == []
    summary = summarize_dashboard(None, today=TODAY)
    assert summary.total_balance == 0
    assert summarize_debts(None).net == 0
    assert debt_category_breakdown(None, None) == []


# ---- dashboard ----

def test_dashboard_totals_and_month_window():
    transactions = [
        tx("income", 5000000, when=date(2026, 1, 1)),
        tx("expense", 100000, when=date(2026, 1, 31)),
        tx("expense", 70000, when=date(2025, 12, 31)),
        tx("income", 300000, when=date(2026, 2, 1)),
    ]
    summary = summarize_dashboard(transactions, today=TODAY)

    assert summary.total_balance == 5000000 + 300000 - 100000 - 70000
    assert summary.month_income == 5000000
    assert summary.month_expense == 100000
    assert summary.month_net == 4900000
    assert summary.month_start == date(2026, 1, 1)
    assert summary.month_end == date(2026, 1, 31)


def test_dashboard_excludes_transfer_legs_from_month_totals():
    transactions = [
        tx("expense", 50000),
        tx("expense", 200000, origin="transfer", category="Transfer Out"),
        tx("income", 200000, account="GoPay", origin="transfer", category="Transfer In"),
    ]
    summary = summarize_dashboard(transactions, today=TODAY)

    assert summary.month_expense == 50000
    assert summary.month_income == 0
    assert summary.total_balance == -50000


def test_spending_by_category_sorted_and_direct_only():
    transactions = [
        tx("expense", 10, category="Food"),
        tx("expense", 30, category="Transport"),
        tx("expense", 15, category="Food"),
        tx("expense", 99, category="Transfer Out", origin="transfer"),
        tx("income", 500, category="Salary"),
        tx("expense", 1000, category="Food", when=date(2025, 12, 1)),
    ]
    start, end = month_bounds(TODAY)

    assert spending_by_category(transactions, start, end) == [
        {"label": "Transport", "value": 30},
        {"label": "Food", "value": 25},
    ]


def test_month_bounds_december():
    assert month_bounds(date(2025, 12, 10)) == (date(2025, 12, 1), date(2025, 12, 31))
    assert month_bounds(date(2024, 2, 29)) == (date(2024, 2, 1), date(2024, 2, 29))


# ---- saving goals ----

def goal(target=1000000, target_date=date(2026, 6, 15), initial=0, id=1):
    return SavingGoal(id=id, name="Holiday", target_amount=target, target_date=target_date, initial_amount=initial)


def test_saving_goal_five_months_ahead():
    progress = saving_goal_progress(goal(), 250000, today=TODAY)

    assert progress.remaining == 750000
    assert progress.progress == 25
    assert progress.months_remaining == 5
    assert progress.monthly_contribution == 150000


def test_saving_goal_in_the_past_asks_for_full_remaining():
    progress = saving_goal_progress(goal(target_date=date(2025, 12, 1)), 250000, today=TODAY)

    assert progress.months_remaining == 0
    assert progress.monthly_contribution == 750000


def test_saving_goal_due_today_has_no_months_left():
    progress = saving_goal_progress(goal(target_date=TODAY), 100000, today=TODAY)

    assert progress.months_remaining == 0
    assert progress.monthly_contribution == 900000


def test_saving_goal_exceeded_keeps_negative_remaining_and_caps_progress():
    progress = saving_goal_progress(goal(), 1200000, today=TODAY)

    assert progress.remaining == -200000
    assert progress.target_exceeded
    assert progress.progress == 100


def test_saving_goal_zero_target():
    progress = saving_goal_progress(goal(target=0), 0, today=TODAY)

    assert progress.progress == 0
    assert progress.remaining == 0


def test_whole_months_between():
    assert whole_months_between(date(2026, 1, 31), date(2026, 2, 27)) == 0
    assert whole_months_between(date(2026, 1, 31), date(2026, 2, 28)) == 1
    assert whole_months_between(date(2026, 1, 31), date(2026, 6, 30)) == 4
    assert whole_months_between(date(2025, 11, 30), date(2026, 2, 28)) == 3
    assert whole_months_between(date(2026, 3, 31), date(2026, 4, 30)) == 1
    assert whole_months_between(date(2026, 3, 31), date(2026, 5, 30)) == 1
    assert whole_months_between(date(2026, 1, 15), date(2026, 6, 14)) == 4
    assert whole_months_between(date(2026, 1, 15), date(2027, 1, 15)) == 12
    assert whole_months_between(date(2026, 1, 15), date(2025, 1, 15)) == 0


def test_saved_amount_counts_only_linked_saving_transactions():
    g = goal(initial=100000)
    transactions = [
        tx("income", 200000, category="Savings Deposit", goal=1),
        tx("income", 50000, category="Savings Deposit", goal=1),
        tx("expense", 30000, category="Savings Withdrawal", goal=1),
        tx("income", 999999, category="Savings Deposit", goal=2),
        tx("income", 888888, category="Salary", goal=1),
    ]
    assert saved_amount(g, transactions) == 100000 + 200000 + 50000 - 30000


def test_saving_summary():
    goals = [goal(id=1, initial=250000), goal(id=2, target=500000, initial=500000)]
    progress = summarize_saving_goals(goals, [], today=TODAY)
    summary = saving_summary(progress)

    assert summary.total_target == 1500000
    assert summary.total_saved == 750000
    assert summary.total_remaining == 750000
    assert summary.overall_progress == 50


# ---- debts ----

def test_debt_status_rule():
    assert debt_status(0, 100) == "unpaid"
    assert debt_status(40, 100) == "partially_paid"
    assert debt_status(100, 100) == "paid"
    assert debt_status(150, 100) == "paid"


def test_debt_status_is_stable():
    assert debt_status(40, 100) == debt_status(40, 100)


def test_debt_fully_paid():
    progress = debt_progress(Debt(type="payable", counterparty="Budi", amount=500000, amount_paid=500000))

    assert progress.status == "paid"
    assert progress.progress == 100
    assert progress.remaining == 0


def test_debt_zero_amount_is_paid_without_division_error():
    progress = debt_progress(Debt(type="payable", counterparty="Budi", amount=0, amount_paid=0))

    assert progress.progress == 0
    assert progress.status == "paid"


def test_debt_overpaid_progress_is_clamped():
    progress = debt_progress(Debt(type="receivable", counterparty="Sari", amount=100, amount_paid=250))

    assert progress.progress == 100
    assert progress.remaining == -150


def test_stored_status_is_ignored_on_read():
    stale = Debt(type="payable", counterparty="Budi", amount=100, amount_paid=60, status="unpaid")
    assert debt_progress(stale).status == "partially_paid"


def test_debt_summary():
    debts = [
        Debt(type="payable", amount=1000, amount_paid=400),
        Debt(type="payable", amount=500, amount_paid=0),
        Debt(type="receivable", amount=300, amount_paid=100),
    ]
    summary = summarize_debts(debts)

    assert summary.total_payable == 1500
    assert summary.payable_paid == 400
    assert summary.total_receivable == 300
    assert summary.receivable_collected == 100
    assert summary.net == -1200


def test_debt_category_breakdown_uses_other_for_unknown_category():
    categories = [Category(id=1, name="Personal Loan", kind="debt")]
    debts = [
        Debt(type="payable", category_id=1, amount=1000, amount_paid=400),
        Debt(type="payable", category_id=1, amount=200, amount_paid=0),
        Debt(type="payable", category_id=42, amount=300, amount_paid=100),
        Debt(type="receivable", category_id=1, amount=9999, amount_paid=0),
    ]

    assert debt_category_breakdown(debts, categories) == [
        {"label": "Personal Loan", "value": 800},
        {"label": "Other", "value": 200},
    ]
