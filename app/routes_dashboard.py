# app/routes_dashboard.py
"""
Dashboards: the main overview and the per-account balances.
"""

from datetime import date

from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from .deps import templates, get_db, get_current_user
from app.services.aggregation import (
    summarize_dashboard,
    summarize_accounts,
    spending_by_category,
)
from config import RECENT_TRANSACTIONS_LIMIT
from models import Account, Transaction, User

router = APIRouter()


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(
    request: Request,
    message: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    today = date.today()

    transactions = (
        db.query(Transaction)
        .filter(Transaction.user_id == user.id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .all()
    )

    summary = summarize_dashboard(transactions, today=today)

    # Spending by category (direct expenses of the current month)
    spending = spending_by_category(transactions, summary.month_start, summary.month_end)
    total_spent = sum(item["value"] for item in spending)

    recent_transactions = transactions[:RECENT_TRANSACTIONS_LIMIT]

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": user,
            "today": today,
            "summary": summary,
            "spending_by_category": spending,
            "total_spent": total_spent,
            "recent_transactions": recent_transactions,
            "message": message,
            "error": error,
        },
    )


@router.get("/accounts/dashboard", response_class=HTMLResponse)
def account_dashboard_page(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    accounts = (
        db.query(Account)
        .filter(Account.user_id == user.id)
        .order_by(Account.kind, Account.name)
        .all()
    )
    transactions = db.query(Transaction).filter(Transaction.user_id == user.id).all()

    summaries = summarize_accounts(accounts, transactions)

    return templates.TemplateResponse(
        request,
        "account_dashboard.html",
        {
            "user": user,
            "summaries": summaries,
            "total_balance": sum(s.balance for s in summaries),
        },
    )
