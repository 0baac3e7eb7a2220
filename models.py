# models.py
# Role: SQLAlchemy ORM models for the finance tracker domain.
#       Users own accounts, categories, transactions, saving goals and debts.
#       Transactions reference accounts and categories by name, joined at read time.

from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Float,
    Text,
    ForeignKey,
    UniqueConstraint,
)

from db import Base

# -------------------------------------------------------------------
# Allowed values for the string "kind" columns
# -------------------------------------------------------------------

ACCOUNT_KINDS = ("bank", "digital_wallet", "cash")

CATEGORY_KINDS = (
    "income",
    "expense",
    "bill",
    "saving",
    "investment",
    "debt",
    "receivable",
)

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_KINDS = (INCOME, EXPENSE)

# How a transaction came to exist: entered by hand, or one leg of a transfer
DIRECT = "direct"
TRANSFER = "transfer"
TRANSACTION_ORIGINS = (DIRECT, TRANSFER)

PAYABLE = "payable"
RECEIVABLE = "receivable"
DEBT_TYPES = (PAYABLE, RECEIVABLE)

UNPAID = "unpaid"
PARTIALLY_PAID = "partially_paid"
PAID = "paid"
DEBT_STATUSES = (UNPAID, PARTIALLY_PAID, PAID)


class User(Base):
    """Owner of every other row. Passwords are stored as bcrypt hashes."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Account(Base):
    """
    A bank account, digital wallet or cash pocket.

    The name is the join key used by transactions, so it is unique per user.
    """

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Display label, e.g. "BCA - 1234567890"
    name = Column(String, nullable=False)

    # One of ACCOUNT_KINDS
    kind = Column(String, nullable=False, default="bank")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    # One of CATEGORY_KINDS
    kind = Column(String, nullable=False)


class Transaction(Base):
    """
    ORM model representing a single income or expense.

    A transfer between two accounts is stored as two rows (an expense on the
    source account and an income on the destination account) sharing the same
    transfer_group and marked with origin="transfer".
    Rows are only ever inserted or deleted, never updated.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Calendar day of the transaction (no time component)
    date = Column(Date, nullable=False)

    # INCOME or EXPENSE
    kind = Column(String, nullable=False)

    # DIRECT or TRANSFER
    origin = Column(String, nullable=False, default=DIRECT)

    # Category name (free text, matched against Category.name at read time)
    category = Column(String, nullable=False)

    # Always non-negative; the sign comes from kind
    amount = Column(Float, nullable=False)

    # Optional free-text description
    description = Column(Text, nullable=True)

    # Account name (matched against Account.name at read time)
    account = Column(String, nullable=False, index=True)

    # Shared by both legs of one transfer
    transfer_group = Column(String, nullable=True, index=True)

    # Only set for savings deposit / withdrawal categories
    saving_goal_id = Column(Integer, ForeignKey("saving_goals.id"), nullable=True, index=True)

    @property
    def is_transfer(self) -> bool:
        return self.origin == TRANSFER


class SavingGoal(Base):
    """
    A target amount to reach by a target date.

    The saved amount is not stored: it is the initial amount plus linked
    deposits minus linked withdrawals (see app/services/aggregation.py).
    """

    __tablename__ = "saving_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    target_date = Column(Date, nullable=False)
    target_amount = Column(Float, nullable=False)

    # Cash already set aside when the goal was created
    initial_amount = Column(Float, nullable=False, default=0.0)


class Debt(Base):
    """
    Money owed by the user (payable) or to the user (receivable).

    status is kept consistent with amount_paid / amount on every write
    and recomputed on every read.
    """

    __tablename__ = "debts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # PAYABLE or RECEIVABLE
    type = Column(String, nullable=False)

    # Category of kind "debt" / "receivable"; may dangle after the category is deleted
    category_id = Column(Integer, nullable=True)

    # The other party
    counterparty = Column(String, nullable=False)

    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    amount_paid = Column(Float, nullable=False, default=0.0)
    due_date = Column(Date, nullable=True)

    # One of DEBT_STATUSES
    status = Column(String, nullable=False, default=UNPAID)
