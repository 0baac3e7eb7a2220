# main.py
# Role: Application entry point for the finance tracker.
#       Configures logging, initializes the FastAPI app, creates database tables,
#       mounts static assets, and registers all route modules.

"""
Main FastAPI app for the personal finance tracker.

Here we only:
- configure logging
- create the FastAPI app
- set up static files
- create DB tables
- include route modules

Run with:
    uvicorn main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

import models  # noqa: F401  (registers tables on Base.metadata)
from config import LOG_LEVEL
from db import Base, engine
from app.deps import STATIC_DIR
from app.routes_root import router as root_router
from app.routes_dashboard import router as dashboard_router
from app.routes_accounts import router as accounts_router
from app.routes_categories import router as categories_router
from app.routes_transactions import router as transactions_router
from app.routes_savings import router as savings_router
from app.routes_debts import router as debts_router


# -------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
# This is safe to run on startup for SQLite and development usage.
Base.metadata.create_all(bind=engine)

# FastAPI application instance
app = FastAPI(title="Finance Tracker")

# Serve static files (CSS) from /static
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Root / landing routes
app.include_router(root_router)

# Main dashboard and per-account balances
app.include_router(dashboard_router)

# Accounts and categories (guarded deletes)
app.include_router(accounts_router)
app.include_router(categories_router)

# Transactions list, add / transfer / delete / reset
app.include_router(transactions_router)

# Saving goals and debt tracker
app.include_router(savings_router)
app.include_router(debts_router)
