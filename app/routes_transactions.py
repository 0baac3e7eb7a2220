# routes_transactions.py
"""
Routes related to the transactions list, adding / deleting transactions,
transfers between accounts, and the password-confirmed reset.
"""

import logging
from datetime import date, timedelta
from typing import List
from urllib.parse import urlencode

from fastapi import APIRouter, Request, Depends, Query, Form
from fastapi.responses import HTMLResponse
from sqlalchemy import or_, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    Account,
    Category,
    SavingGoal,
    Transaction,
    User,
    INCOME,
    EXPENSE,
    TRANSACTION_KINDS,
)
from app.deps import get_db, get_current_user, templates, redirect_with, get_or_404
from app.errors import FinanceError, ValidationError, ReauthenticationError
from app.services.transaction_helpers import (
    build_transaction_from_form,
    build_transfer_from_form,
    get_month_range,
)
from app.services.users import verify_password
from config import SAVING_DEPOSIT_CATEGORY, SAVING_WITHDRAWAL_CATEGORY

logger = logging.getLogger(__name__)

router = APIRouter()


# Convert amount filters safely
def parse_optional_float(value: str) -> float | None:
    value = value.strip()
    if value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _ensure_account_known(db: Session, user: User, name: str) -> None:
    found = db.query(Account.id).filter(Account.user_id == user.id, Account.name == name).first()
    if found is None:
        raise ValidationError(f"Unknown account '{name}'.")


@router.get("/transactions", response_class=HTMLResponse)
def transactions_page(
    request: Request,
    month: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    search: str | None = Query(None),
    category: List[str] = Query(default=[]),
    account: List[str] = Query(default=[]),
    kind: str | None = Query(None),
    min_amount: str = Query(""),
    max_amount: str = Query(""),
    sort: str = Query("date"),
    dir: str = Query("desc"),
    message: str | None = Query(None),
    error: str | None = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):

    if start_date and end_date:
        range_start = start_date
        # the day after date.max does not exist
        range_end_exclusive = min(end_date, date.max - timedelta(days=1)) + timedelta(days=1)
        normalized_month = None
    else:
        range_start, range_end_exclusive, normalized_month = get_month_range(month)

    filters = [
        Transaction.user_id == user.id,
        Transaction.date >= range_start,
        Transaction.date < range_end_exclusive,
    ]

    # Search
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                Transaction.description.ilike(pattern),
                Transaction.category.ilike(pattern),
            )
        )

    if category:
        filters.append(Transaction.category.in_(category))

    if account:
        filters.append(Transaction.account.in_(account))

    if kind in TRANSACTION_KINDS:
        filters.append(Transaction.kind == kind)

    # Amount parsing + filters
    min_amount_val = parse_optional_float(min_amount)
    max_amount_val = parse_optional_float(max_amount)

    if min_amount_val is not None:
        filters.append(Transaction.amount >= min_amount_val)

    if max_amount_val is not None:
        filters.append(Transaction.amount <= max_amount_val)

    # Totals for filtered view (before sorting)
    income_sum, expense_sum = db.query(
        func.coalesce(func.sum(case((Transaction.kind == INCOME, Transaction.amount), else_=0.0)), 0.0),
        func.coalesce(func.sum(case((Transaction.kind == EXPENSE, Transaction.amount), else_=0.0)), 0.0),
    ).filter(*filters).one()

    # Sorting (single order_by applied once)
    sort_key = sort if sort in {"date", "amount"} else "date"
    sort_dir = dir if dir in {"asc", "desc"} else "desc"
    sort_col = Transaction.amount if sort_key == "amount" else Transaction.date
    query = db.query(Transaction).filter(*filters).order_by(
        sort_col.asc() if sort_dir == "asc" else sort_col.desc(),
        Transaction.id.desc(),
    )

    def build_sort_url(column: str) -> str:
        next_dir = "asc" if (sort_key == column and sort_dir == "desc") else "desc"

        # Keep ALL existing params, including repeated ones (category/account)
        items = [
            (k, v)
            for (k, v) in request.query_params.multi_items()
            if k not in ("sort", "dir", "message", "error")
        ]
        items.append(("sort", column))
        items.append(("dir", next_dir))

        return "/transactions?" + urlencode(items, doseq=True)

    transactions = query.all()

    # Values for the filter dropdowns
    all_categories = [
        row[0]
        for row in db.query(Transaction.category)
        .filter(Transaction.user_id == user.id)
        .distinct()
        .order_by(Transaction.category)
        .all()
    ]

    # Rows for the add forms
    accounts = db.query(Account).filter(Account.user_id == user.id).order_by(Account.name).all()
    categories = db.query(Category).filter(Category.user_id == user.id).order_by(Category.name).all()
    goals = db.query(SavingGoal).filter(SavingGoal.user_id == user.id).order_by(SavingGoal.target_date).all()

    return templates.TemplateResponse(
        request,
        "transactions.html",
        {
            "user": user,
            "transactions": transactions,
            "current_month": normalized_month,
            "range_start": range_start,
            "range_end": range_end_exclusive - timedelta(days=1),
            "search": search or "",
            "all_categories": all_categories,
            "selected_categories": category,
            "all_accounts": [acc.name for acc in accounts],
            "selected_accounts": account,
            "selected_kind": kind or "",
            "min_amount": min_amount,
            "max_amount": max_amount,
            "income_sum": float(income_sum),
            "expense_sum": float(expense_sum),
            "net_sum": float(income_sum) - float(expense_sum),
            "sort": sort_key,
            "dir": sort_dir,
            "date_sort_url": build_sort_url("date"),
            "amount_sort_url": build_sort_url("amount"),
            "accounts": accounts,
            "categories": categories,
            "saving_goals": goals,
            "saving_categories": (SAVING_DEPOSIT_CATEGORY, SAVING_WITHDRAWAL_CATEGORY),
            "today": date.today(),
            "message": message,
            "error": error,
        },
    )


@router.post("/transactions")
def add_transaction(
    date: str = Form(""),
    kind: str = Form(""),
    category: str = Form(""),
    amount: str = Form(""),
    account: str = Form(""),
    description: str = Form(""),
    saving_goal_id: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Validate and insert one income or expense.
    Nothing is written when validation fails.
    """
    try:
        tx = build_transaction_from_form(
            user.id, date, kind, category, amount, account, description, saving_goal_id
        )
        _ensure_account_known(db, user, tx.account)

        known_category = (
            db.query(Category.id)
            .filter(Category.user_id == user.id, Category.name == tx.category)
            .first()
        )
        if known_category is None:
            raise ValidationError(f"Unknown category '{tx.category}'.")

        if tx.saving_goal_id is not None:
            goal = (
                db.query(SavingGoal.id)
                .filter(SavingGoal.user_id == user.id, SavingGoal.id == tx.saving_goal_id)
                .first()
            )
            if goal is None:
                raise ValidationError("Saving goal not found.")
    except FinanceError as e:
        return redirect_with("/transactions", error=e.message)

    try:
        db.add(tx)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to add transaction for user %s", user.id)
        return redirect_with("/transactions", error=f"Failed to add transaction: {e}")

    logger.info("user %s added %s of %.2f on %r", user.id, tx.kind, tx.amount, tx.account)
    return redirect_with("/transactions", message="Transaction added.")


@router.post("/transactions/transfer")
def add_transfer(
    date: str = Form(""),
    amount: str = Form(""),
    source_account: str = Form(""),
    target_account: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Insert both legs of a transfer in a single commit: either both rows
    exist afterwards or neither does.
    """
    try:
        outgoing, incoming = build_transfer_from_form(
            user.id, date, amount, source_account, target_account, description
        )
        _ensure_account_known(db, user, outgoing.account)
        _ensure_account_known(db, user, incoming.account)
    except FinanceError as e:
        return redirect_with("/transactions", error=e.message)

    try:
        db.add_all([outgoing, incoming])
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to add transfer for user %s", user.id)
        return redirect_with("/transactions", error=f"Failed to add transfer: {e}")

    logger.info(
        "user %s transferred %.2f from %r to %r",
        user.id, outgoing.amount, outgoing.account, incoming.account,
    )
    return redirect_with("/transactions", message="Transfer recorded.")


@router.post("/transactions/reset")
def reset_transactions(
    password: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Delete every transaction of the current user.

    The password must be entered again; if it does not match nothing is deleted.
    """
    try:
        if not verify_password(user, password):
            logger.warning("reset refused for user %s: password check failed", user.id)
            raise ReauthenticationError("Password is incorrect. No transactions were deleted.")
    except FinanceError as e:
        return redirect_with("/transactions", error=e.message)

    try:
        deleted = (
            db.query(Transaction)
            .filter(Transaction.user_id == user.id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to reset transactions for user %s", user.id)
        return redirect_with("/transactions", error=f"Failed to reset transactions: {e}")

    logger.info("user %s reset transactions: %d deleted", user.id, deleted)
    return redirect_with("/transactions", message=f"{deleted} transaction(s) deleted.")


@router.post("/transactions/{transaction_id}/delete")
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tx = get_or_404(db, Transaction, transaction_id, user)

    try:
        db.delete(tx)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to delete transaction %s", transaction_id)
        return redirect_with("/transactions", error=f"Failed to delete transaction: {e}")

    logger.info("user %s deleted transaction %s", user.id, transaction_id)
    return redirect_with("/transactions", message="Transaction deleted.")
