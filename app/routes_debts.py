# routes_debts.py
"""
Debt tracker: payables (money the user owes) and receivables (money owed to
the user), with payment progress, totals and a breakdown by category.
"""

import logging

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Category, Debt, User, DEBT_TYPES, PAYABLE
from app.deps import get_db, get_current_user, templates, redirect_with, get_or_404
from app.errors import FinanceError, ValidationError
from app.services.aggregation import (
    debt_status,
    debt_progress,
    summarize_debts,
    debt_category_breakdown,
)
from app.services.transaction_helpers import build_debt_from_form, parse_amount

logger = logging.getLogger(__name__)

router = APIRouter()


def apply_debt_status(debt: Debt) -> Debt:
    """Keep the stored status in line with amount_paid / amount before a write."""
    debt.status = debt_status(debt.amount_paid, debt.amount)
    return debt


@router.get("/debts", response_class=HTMLResponse)
def debts_page(
    request: Request,
    message: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    debts = (
        db.query(Debt)
        .filter(Debt.user_id == user.id)
        .order_by(Debt.due_date.is_(None), Debt.due_date.asc(), Debt.id)
        .all()
    )
    categories = (
        db.query(Category)
        .filter(Category.user_id == user.id, Category.kind.in_(("debt", "receivable")))
        .order_by(Category.name)
        .all()
    )

    return templates.TemplateResponse(
        request,
        "debts.html",
        {
            "user": user,
            "debts": [debt_progress(d) for d in debts],
            "summary": summarize_debts(debts),
            "breakdown": debt_category_breakdown(debts, categories),
            "categories": categories,
            "debt_types": DEBT_TYPES,
            "message": message,
            "error": error,
        },
    )


@router.post("/debts")
def create_debt(
    type: str = Form(PAYABLE),
    category_id: str = Form(""),
    counterparty: str = Form(""),
    amount: str = Form(""),
    amount_paid: str = Form(""),
    due_date: str = Form(""),
    description: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        debt = build_debt_from_form(
            user.id, type, category_id, counterparty, amount, amount_paid, due_date, description
        )
        expected_kind = "debt" if debt.type == PAYABLE else "receivable"
        category = (
            db.query(Category.id)
            .filter(
                Category.user_id == user.id,
                Category.id == debt.category_id,
                Category.kind == expected_kind,
            )
            .first()
        )
        if category is None:
            raise ValidationError("Pick a category matching the debt type.")
    except FinanceError as e:
        return redirect_with("/debts", error=e.message)

    apply_debt_status(debt)

    try:
        db.add(debt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to create debt for user %s", user.id)
        return redirect_with("/debts", error=f"Failed to add debt: {e}")

    logger.info("user %s created %s debt with %r (%s)", user.id, debt.type, debt.counterparty, debt.status)
    return redirect_with("/debts", message="Debt added.")


@router.post("/debts/{debt_id}/payment")
def update_debt_payment(
    debt_id: int,
    amount_paid: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Set the total amount paid so far; the status follows from it."""
    debt = get_or_404(db, Debt, debt_id, user)

    try:
        paid = parse_amount(amount_paid, "Amount paid")
    except FinanceError as e:
        return redirect_with("/debts", error=e.message)

    debt.amount_paid = paid
    apply_debt_status(debt)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to update debt %s", debt_id)
        return redirect_with("/debts", error=f"Failed to update progress: {e}")

    logger.info("user %s set debt %s paid=%.2f (%s)", user.id, debt_id, paid, debt.status)
    return redirect_with("/debts", message="Progress updated.")


@router.post("/debts/{debt_id}/settle")
def settle_debt(
    debt_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mark as paid by paying off the full amount."""
    debt = get_or_404(db, Debt, debt_id, user)

    debt.amount_paid = debt.amount
    apply_debt_status(debt)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to settle debt %s", debt_id)
        return redirect_with("/debts", error=f"Failed to update progress: {e}")

    label = "Debt" if debt.type == PAYABLE else "Receivable"
    logger.info("user %s settled debt %s", user.id, debt_id)
    return redirect_with("/debts", message=f"{label} marked as paid.")


@router.post("/debts/{debt_id}/delete")
def delete_debt(
    debt_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    debt = get_or_404(db, Debt, debt_id, user)

    try:
        db.delete(debt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to delete debt %s", debt_id)
        return redirect_with("/debts", error=f"Failed to delete debt: {e}")

    logger.info("user %s deleted debt %s", user.id, debt_id)
    return redirect_with("/debts", message="Debt deleted.")
