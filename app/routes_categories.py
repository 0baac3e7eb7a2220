# routes_categories.py
"""
Routes for managing income / expense / bill / saving / investment / debt categories.
"""

import logging

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Category, User, CATEGORY_KINDS
from app.deps import get_db, get_current_user, templates, redirect_with, get_or_404
from app.errors import FinanceError, ValidationError
from app.services.integrity import ensure_category_unused
from app.services.transaction_helpers import require, parse_choice

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/categories", response_class=HTMLResponse)
def categories_page(
    request: Request,
    message: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    categories = (
        db.query(Category)
        .filter(Category.user_id == user.id)
        .order_by(Category.name)
        .all()
    )
    grouped = {kind: [c for c in categories if c.kind == kind] for kind in CATEGORY_KINDS}

    return templates.TemplateResponse(
        request,
        "categories.html",
        {
            "user": user,
            "grouped_categories": grouped,
            "category_kinds": CATEGORY_KINDS,
            "message": message,
            "error": error,
        },
    )


@router.post("/categories")
def create_category(
    name: str = Form(""),
    kind: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        category_name = require(name, "Category name")
        category_kind = parse_choice(kind, CATEGORY_KINDS, "Category type")

        exists = (
            db.query(Category.id)
            .filter(
                Category.user_id == user.id,
                Category.name == category_name,
                Category.kind == category_kind,
            )
            .first()
        )
        if exists:
            raise ValidationError(f"Category '{category_name}' already exists.")
    except FinanceError as e:
        return redirect_with("/categories", error=e.message)

    try:
        db.add(Category(user_id=user.id, name=category_name, kind=category_kind))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to create category %r", category_name)
        return redirect_with("/categories", error=f"Failed to add category: {e}")

    logger.info("user %s created category %r (%s)", user.id, category_name, category_kind)
    return redirect_with("/categories", message="Category added.")


@router.post("/categories/{category_id}/delete")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    category = get_or_404(db, Category, category_id, user)

    try:
        ensure_category_unused(db, category)
        db.delete(category)
        db.commit()
    except FinanceError as e:
        return redirect_with("/categories", error=e.message)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to delete category %s", category_id)
        return redirect_with("/categories", error=f"Failed to delete category: {e}")

    logger.info("user %s deleted category %s", user.id, category_id)
    return redirect_with("/categories", message="Category deleted.")
