# config.py
# Role: Runtime configuration for the finance tracker.
#       Loads .env (if present) and exposes settings read from the environment,
#       plus the reserved category names used by transfers and savings goals.

import os

from dotenv import load_dotenv

load_dotenv()

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Default SQLite location: <project_root>/database/finance.db
DB_DIR = os.path.join(BASE_DIR, "database")
DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(DB_DIR, 'finance.db')}"

DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Currency display
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "Rp")
CURRENCY_DECIMALS = int(os.getenv("CURRENCY_DECIMALS", "0"))

# Transactions in these categories may be linked to a saving goal
SAVING_DEPOSIT_CATEGORY = os.getenv("SAVING_DEPOSIT_CATEGORY", "Savings Deposit")
SAVING_WITHDRAWAL_CATEGORY = os.getenv("SAVING_WITHDRAWAL_CATEGORY", "Savings Withdrawal")

# Display categories of the two legs of a transfer
TRANSFER_IN_CATEGORY = "Transfer In"
TRANSFER_OUT_CATEGORY = "Transfer Out"

# Bucket for debts whose category no longer exists
OTHER_CATEGORY = "Other"

RECENT_TRANSACTIONS_LIMIT = 10
