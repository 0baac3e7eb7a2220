# routes_accounts.py
"""
Routes for managing accounts (bank accounts, digital wallets, cash).
"""

import logging

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import Account, User, ACCOUNT_KINDS
from app.deps import get_db, get_current_user, templates, redirect_with, get_or_404
from app.errors import FinanceError
from app.services.integrity import ensure_account_unused
from app.services.transaction_helpers import require, parse_choice

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/accounts", response_class=HTMLResponse)
def accounts_page(
    request: Request,
    message: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    accounts = (
        db.query(Account)
        .filter(Account.user_id == user.id)
        .order_by(Account.name)
        .all()
    )

    # kind -> [accounts], in ACCOUNT_KINDS order
    grouped = {kind: [acc for acc in accounts if acc.kind == kind] for kind in ACCOUNT_KINDS}

    return templates.TemplateResponse(
        request,
        "accounts.html",
        {
            "user": user,
            "grouped_accounts": grouped,
            "account_kinds": ACCOUNT_KINDS,
            "message": message,
            "error": error,
        },
    )


@router.post("/accounts")
def create_account(
    name: str = Form(""),
    kind: str = Form("bank"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        account_name = require(name, "Account name")
        account_kind = parse_choice(kind, ACCOUNT_KINDS, "Account type")
    except FinanceError as e:
        return redirect_with("/accounts", error=e.message)

    try:
        db.add(Account(user_id=user.id, name=account_name, kind=account_kind))
        db.commit()
    except IntegrityError:
        # uq_account_user_name
        db.rollback()
        return redirect_with("/accounts", error=f"Account '{account_name}' already exists.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to create account %r", account_name)
        return redirect_with("/accounts", error=f"Failed to add account: {e}")

    logger.info("user %s created account %r (%s)", user.id, account_name, account_kind)
    return redirect_with("/accounts", message="Account added.")


@router.post("/accounts/{account_id}/delete")
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = get_or_404(db, Account, account_id, user)

    try:
        ensure_account_unused(db, account)
        db.delete(account)
        db.commit()
    except FinanceError as e:
        return redirect_with("/accounts", error=e.message)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to delete account %s", account_id)
        return redirect_with("/accounts", error=f"Failed to delete account: {e}")

    logger.info("user %s deleted account %s", user.id, account_id)
    return redirect_with("/accounts", message="Account deleted.")
