"""
This module imports historical transactions from normalized CSV tables
(one file per month or per year) into the database for one user.

Source files are expected to be pre-cleaned (consistent headers, ISO or
DD-MM-YYYY dates, numeric amounts). The importer validates required fields,
removes empty rows, and inserts transactions in batches using SQLAlchemy ORM.

Columns:
    date, type (income/expense), category, amount, account   required
    description                                              optional

Rows in the "Transfer In" / "Transfer Out" categories are stored as transfer
legs, so they are kept out of monthly income and expense totals.

Usage:
    python -m app.services.history_import alice data/normalized
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from config import TRANSFER_IN_CATEGORY, TRANSFER_OUT_CATEGORY
from models import Transaction, User, TRANSACTION_KINDS, DIRECT, TRANSFER

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"date", "type", "category", "amount", "account"}


def _parse_date(s):
    text = str(s).strip()
    for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognized date: {text!r}")


def _none_if_nan(x):
    if pd.isna(x):
        return None
    s = str(x).strip()
    return None if s == "" or s.lower() == "nan" else s


def read_transactions_csv(path: Path, user_id: int) -> list[Transaction]:
    """Parse one CSV file into (unsaved) Transaction objects."""
    df = pd.read_csv(path)

    # normalize headers
    df.columns = df.columns.str.strip().str.lower()

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"{path.name}: missing required columns: {sorted(missing)}")

    if "description" not in df.columns:
        df["description"] = None

    # drop fully empty rows
    df = df.dropna(how="all").copy()

    df["date"] = df["date"].apply(_parse_date)
    df["type"] = df["type"].astype(str).str.strip().str.lower()

    bad_types = set(df["type"]) - set(TRANSACTION_KINDS)
    if bad_types:
        raise ValueError(f"{path.name}: unknown transaction types: {sorted(bad_types)}")

    # parse amount (handle spaces and decimal commas just in case)
    amount_clean = (
        df["amount"]
        .astype(str)
        .str.replace(" ", "", regex=False)
        .str.replace(",", ".", regex=False)
        .str.strip()
    )
    df["amount"] = pd.to_numeric(amount_clean, errors="raise").abs()

    objs = []
    for row in df.itertuples(index=False):
        category = _none_if_nan(getattr(row, "category"))
        account = _none_if_nan(getattr(row, "account"))
        if category is None or account is None:
            continue

        is_transfer = category in (TRANSFER_IN_CATEGORY, TRANSFER_OUT_CATEGORY)
        objs.append(
            Transaction(
                user_id=user_id,
                date=getattr(row, "date"),
                kind=getattr(row, "type"),
                origin=TRANSFER if is_transfer else DIRECT,
                category=category,
                amount=float(getattr(row, "amount")),
                description=_none_if_nan(getattr(row, "description")),
                account=account,
            )
        )
    return objs


def import_normalized_csvs(
    session: Session,
    user: User,
    folder: Path,
    batch_size: int = 1000,
) -> int:
    """
    Import every *.csv in folder for user. Returns the number of rows inserted.

    A file that fails validation aborts the import of that file and everything
    after it; batches already committed stay.
    """
    folder = Path(folder)
    csv_files = sorted(folder.glob("*.csv"))
    if not csv_files:
        raise FileNotFoundError(f"No CSV files found in: {folder.resolve()}")

    total_inserted = 0
    try:
        for f in csv_files:
            objs = read_transactions_csv(f, user.id)

            # insert in batches
            for i in range(0, len(objs), batch_size):
                session.add_all(objs[i : i + batch_size])
                session.commit()

            total_inserted += len(objs)
            logger.info("imported %d rows from %s", len(objs), f.name)
    except Exception:
        session.rollback()
        raise

    logger.info("import done: %d rows for user %r", total_inserted, user.username)
    return total_inserted


def main(argv=None) -> int:
    from db import Base, SessionLocal, engine

    parser = argparse.ArgumentParser(description="Import historical transactions from CSV files.")
    parser.add_argument("username")
    parser.add_argument("folder", type=Path)
    parser.add_argument("--batch-size", type=int, default=1000)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        user = session.query(User).filter(User.username == args.username).first()
        if user is None:
            print(f"Unknown user {args.username!r}")
            return 1
        total = import_normalized_csvs(session, user, args.folder, batch_size=args.batch_size)
    finally:
        session.close()

    print(f"DONE. Total inserted: {total}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
