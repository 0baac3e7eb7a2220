# routes_savings.py
"""
Saving goals: progress per goal, overall summary, create and delete.
"""

import logging
from datetime import date

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import SavingGoal, Transaction, User
from app.deps import get_db, get_current_user, templates, redirect_with, get_or_404
from app.errors import FinanceError
from app.services.aggregation import summarize_saving_goals, saving_summary
from app.services.transaction_helpers import build_saving_goal_from_form

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/savings", response_class=HTMLResponse)
def savings_page(
    request: Request,
    message: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    goals = (
        db.query(SavingGoal)
        .filter(SavingGoal.user_id == user.id)
        .order_by(SavingGoal.target_date.asc())
        .all()
    )
    linked = (
        db.query(Transaction)
        .filter(Transaction.user_id == user.id, Transaction.saving_goal_id.isnot(None))
        .all()
    )

    progress = summarize_saving_goals(goals, linked, today=date.today())

    return templates.TemplateResponse(
        request,
        "savings.html",
        {
            "user": user,
            "goals": progress,
            "summary": saving_summary(progress),
            "today": date.today(),
            "message": message,
            "error": error,
        },
    )


@router.post("/savings")
def create_saving_goal(
    name: str = Form(""),
    target_date: str = Form(""),
    target_amount: str = Form(""),
    initial_amount: str = Form(""),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        goal = build_saving_goal_from_form(user.id, name, target_date, target_amount, initial_amount)
    except FinanceError as e:
        return redirect_with("/savings", error=e.message)

    try:
        db.add(goal)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to create saving goal %r", goal.name)
        return redirect_with("/savings", error=f"Failed to add saving goal: {e}")

    logger.info("user %s created saving goal %r", user.id, goal.name)
    return redirect_with("/savings", message="Saving goal added.")


@router.post("/savings/{goal_id}/delete")
def delete_saving_goal(
    goal_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Delete a goal. Linked transactions stay (they are real money movements)
    but lose their link to the goal.
    """
    goal = get_or_404(db, SavingGoal, goal_id, user)

    try:
        (
            db.query(Transaction)
            .filter(Transaction.user_id == user.id, Transaction.saving_goal_id == goal.id)
            .update({Transaction.saving_goal_id: None}, synchronize_session=False)
        )
        db.delete(goal)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("failed to delete saving goal %s", goal_id)
        return redirect_with("/savings", error=f"Failed to delete saving goal: {e}")

    logger.info("user %s deleted saving goal %s", user.id, goal_id)
    return redirect_with("/savings", message="Saving goal deleted.")
