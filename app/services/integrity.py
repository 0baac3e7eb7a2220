# app/services/integrity.py
#
# Pre-delete checks for accounts and categories.
# Transactions reference both by name, so a row may only be deleted while no
# transaction of the same user uses that name.
#
# The check and the delete are two separate statements. A transaction inserted
# between them keeps a dangling name, which the aggregation layer ignores.

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.errors import ResourceInUseError
from models import Account, Category, Transaction

logger = logging.getLogger(__name__)


def count_transactions_using(db: Session, user_id: int, column, name: str) -> int:
    return (
        db.query(func.count(Transaction.id))
        .filter(Transaction.user_id == user_id, column == name)
        .scalar()
        or 0
    )


def ensure_account_unused(db: Session, account: Account) -> None:
    count = count_transactions_using(db, account.user_id, Transaction.account, account.name)
    if count > 0:
        logger.warning("refusing to delete account %r: used by %d transactions", account.name, count)
        raise ResourceInUseError(
            f"Account '{account.name}' is used by {count} transaction(s) and cannot be deleted."
        )


def ensure_category_unused(db: Session, category: Category) -> None:
    count = count_transactions_using(db, category.user_id, Transaction.category, category.name)
    if count > 0:
        logger.warning("refusing to delete category %r: used by %d transactions", category.name, count)
        raise ResourceInUseError(
            f"Category '{category.name}' is used by {count} transaction(s) and cannot be deleted."
        )
