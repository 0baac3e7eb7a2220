# app/services/transaction_helpers.py
#
# Form Helper Functions
# Converts submitted form values into ORM objects (validating them first)
# and calculates the date ranges used by the transaction list.

import math
import re
import uuid
from datetime import datetime, date
from typing import Optional, Tuple

from app.errors import ValidationError
from config import (
    SAVING_DEPOSIT_CATEGORY,
    SAVING_WITHDRAWAL_CATEGORY,
    TRANSFER_IN_CATEGORY,
    TRANSFER_OUT_CATEGORY,
)
from models import (
    Transaction,
    SavingGoal,
    Debt,
    TRANSACTION_KINDS,
    DEBT_TYPES,
    INCOME,
    EXPENSE,
    DIRECT,
    TRANSFER,
)


# ---- Field parsing ----

THOUSANDS_RE = re.compile(r"^\d{1,3}(\.\d{3})+$")


def clean_text(value: Optional[str]) -> str:
    return (value or "").strip()


def require(value: Optional[str], label: str) -> str:
    text = clean_text(value)
    if not text:
        raise ValidationError(f"{label} is required.")
    return text


def parse_amount(value: Optional[str], label: str = "Amount", required: bool = True) -> float:
    """
    Parse a non-negative amount typed by the user.
    Accepts '1500000', '1.500', '1.500.000' and '1500000,50'.
    A dot is always a thousands separator, so '12.5' is rejected.
    """
    text = clean_text(value).replace(" ", "")
    if text == "":
        if required:
            raise ValidationError(f"{label} is required.")
        return 0.0

    # Indonesian style: '.' thousands, ',' decimals
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    elif "." in text:
        if not THOUSANDS_RE.match(text):
            raise ValidationError(f"{label} must use '.' for thousands and ',' for decimals.")
        text = text.replace(".", "")

    try:
        amount = float(text)
    except ValueError:
        raise ValidationError(f"{label} must be a number.")

    if not math.isfinite(amount):
        raise ValidationError(f"{label} must be a number.")
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return amount


def parse_date(value: Optional[str], label: str = "Date", required: bool = True) -> Optional[date]:
    text = clean_text(value)
    if not text:
        if required:
            raise ValidationError(f"{label} is required.")
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{label} must be a date (YYYY-MM-DD).")


def parse_choice(value: Optional[str], choices, label: str) -> str:
    text = require(value, label)
    if text not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}.")
    return text


# ---- Transaction conversion ----

def build_transaction_from_form(
    user_id: int,
    date_raw: Optional[str],
    kind: Optional[str],
    category: Optional[str],
    amount: Optional[str],
    account: Optional[str],
    description: Optional[str] = None,
    saving_goal_id: Optional[str] = None,
) -> Transaction:
    """
    Validate one submitted transaction and build the ORM object.

    The saving goal link is only kept for the savings deposit / withdrawal
    categories. A linked deposit must be income and a linked withdrawal an
    expense.
    """
    category_name = require(category, "Category")
    if category_name in (TRANSFER_IN_CATEGORY, TRANSFER_OUT_CATEGORY):
        raise ValidationError("Use the transfer form to move money between accounts.")
    tx_kind = parse_choice(kind, TRANSACTION_KINDS, "Type")

    goal_id = None
    if category_name in (SAVING_DEPOSIT_CATEGORY, SAVING_WITHDRAWAL_CATEGORY):
        goal_text = clean_text(saving_goal_id)
        if goal_text:
            try:
                goal_id = int(goal_text)
            except ValueError:
                raise ValidationError("Saving goal is invalid.")

    if goal_id is not None:
        expected = INCOME if category_name == SAVING_DEPOSIT_CATEGORY else EXPENSE
        if tx_kind != expected:
            raise ValidationError(f"{category_name} linked to a saving goal must be recorded as {expected}.")

    return Transaction(
        user_id=user_id,
        date=parse_date(date_raw),
        kind=tx_kind,
        origin=DIRECT,
        category=category_name,
        amount=parse_amount(amount),
        description=clean_text(description) or None,
        account=require(account, "Account"),
        saving_goal_id=goal_id,
    )


def build_transfer_from_form(
    user_id: int,
    date_raw: Optional[str],
    amount: Optional[str],
    source_account: Optional[str],
    target_account: Optional[str],
    description: Optional[str] = None,
) -> Tuple[Transaction, Transaction]:
    """
    Build the two legs of a transfer: (expense on source, income on target).
    Both share a transfer_group key and must be committed together.
    """
    tx_date = parse_date(date_raw)
    value = parse_amount(amount)
    source = require(source_account, "From account")
    target = require(target_account, "To account")
    if source == target:
        raise ValidationError("Source and destination accounts must differ.")

    group = uuid.uuid4().hex
    note = clean_text(description) or None

    outgoing = Transaction(
        user_id=user_id,
        date=tx_date,
        kind=EXPENSE,
        origin=TRANSFER,
        category=TRANSFER_OUT_CATEGORY,
        amount=value,
        description=note or f"Transfer to {target}",
        account=source,
        transfer_group=group,
    )
    incoming = Transaction(
        user_id=user_id,
        date=tx_date,
        kind=INCOME,
        origin=TRANSFER,
        category=TRANSFER_IN_CATEGORY,
        amount=value,
        description=note or f"Transfer from {source}",
        account=target,
        transfer_group=group,
    )
    return outgoing, incoming


# ---- Saving goals and debts ----

def build_saving_goal_from_form(
    user_id: int,
    name: Optional[str],
    target_date: Optional[str],
    target_amount: Optional[str],
    initial_amount: Optional[str] = None,
) -> SavingGoal:
    return SavingGoal(
        user_id=user_id,
        name=require(name, "Goal name"),
        target_date=parse_date(target_date, "Target date"),
        target_amount=parse_amount(target_amount, "Target amount"),
        initial_amount=parse_amount(initial_amount, "Initial amount", required=False),
    )


def build_debt_from_form(
    user_id: int,
    debt_type: Optional[str],
    category_id: Optional[str],
    counterparty: Optional[str],
    amount: Optional[str],
    amount_paid: Optional[str] = None,
    due_date: Optional[str] = None,
    description: Optional[str] = None,
) -> Debt:
    """Status is left for the caller to set via apply_debt_status."""
    try:
        category = int(require(category_id, "Category"))
    except ValueError:
        raise ValidationError("Category is invalid.")

    return Debt(
        user_id=user_id,
        type=parse_choice(debt_type, DEBT_TYPES, "Type"),
        category_id=category,
        counterparty=require(counterparty, "Counterparty"),
        description=clean_text(description) or None,
        amount=parse_amount(amount),
        amount_paid=parse_amount(amount_paid, "Amount paid", required=False),
        due_date=parse_date(due_date, "Due date", required=False),
    )


# ---- Date Range Utilities ----

def get_month_range(month_str: Optional[str], today: Optional[date] = None):
    """
    month_str: 'YYYY-MM' or None.
    Returns (start_date, end_date_exclusive, normalized_month_str).
    If month_str is None or invalid, uses the CURRENT month.
    """
    today = today or date.today()

    if month_str:
        try:
            year_str, month_only_str = month_str.split("-")
            return _month_bounds(int(year_str), int(month_only_str))
        except ValueError:
            pass

    return _month_bounds(today.year, today.month)


def _month_bounds(year: int, month: int):
    # date() raises ValueError outside years 1-9999 and months 1-12
    start_date = date(year, month, 1)
    if month == 12:
        end_date_exclusive = date(year + 1, 1, 1)
    else:
        end_date_exclusive = date(year, month + 1, 1)

    normalized = f"{year:04d}-{month:02d}"
    return start_date, end_date_exclusive, normalized
