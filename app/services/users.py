# app/services/users.py
#
# User accounts: bcrypt password hashing, credential checks, and the
# management command that creates a user with a starter set of categories.
#
# Usage:
#     python -m app.services.users alice

import argparse
import getpass
import logging
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from config import SAVING_DEPOSIT_CATEGORY, SAVING_WITHDRAWAL_CATEGORY
from models import User, Category

logger = logging.getLogger(__name__)


# Categories every new user starts with: (name, kind)
DEFAULT_CATEGORIES = [
    ("Salary", "income"),
    ("Bonus", "income"),
    ("Freelance", "income"),
    ("Passive Investment", "investment"),
    ("Transport", "expense"),
    ("Food & Drinks", "expense"),
    ("Shopping", "expense"),
    ("Entertainment", "expense"),
    ("Electricity", "bill"),
    ("Water", "bill"),
    ("Internet", "bill"),
    ("Credit Card Installment", "bill"),
    (SAVING_DEPOSIT_CATEGORY, "saving"),
    (SAVING_WITHDRAWAL_CATEGORY, "saving"),
    ("Personal Loan", "debt"),
    ("Money Lent", "receivable"),
]


# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(user: User, password: Optional[str]) -> bool:
    if not password or len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user if username/password match, otherwise None."""
    user = db.query(User).filter(User.username == username).first()
    if user is None or not verify_password(user, password):
        return None
    return user


def create_user(
    db: Session,
    username: str,
    password: str,
    seed_categories: bool = True,
    rounds: int = 12,
) -> User:
    """
    Insert a user (and, by default, the starter categories) in one commit.

    Raises ValueError if the username is empty or already taken.
    """
    username = username.strip()
    if not username or not password:
        raise ValueError("Username and password are required.")
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password cannot be longer than {BCRYPT_MAX_BYTES} bytes.")
    if db.query(User).filter(User.username == username).first() is not None:
        raise ValueError(f"User {username!r} already exists.")

    user = User(username=username, password_hash=hash_password(password, rounds=rounds))
    db.add(user)
    db.flush()

    if seed_categories:
        db.add_all(
            Category(user_id=user.id, name=name, kind=kind)
            for name, kind in DEFAULT_CATEGORIES
        )

    db.commit()
    db.refresh(user)
    logger.info("created user %r (id=%s)", user.username, user.id)
    return user


def main(argv=None) -> int:
    from db import Base, SessionLocal, engine

    parser = argparse.ArgumentParser(description="Create a finance tracker user.")
    parser.add_argument("username")
    parser.add_argument("--no-categories", action="store_true", help="skip the starter categories")
    args = parser.parse_args(argv)

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match.")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = create_user(db, args.username, password, seed_categories=not args.no_categories)
    except ValueError as e:
        print(e)
        return 1
    finally:
        db.close()

    print(f"Created user {user.username!r}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
