# app/deps.py
# Role: Shared application-level dependencies and globals.
#       Provides the Jinja2 templates loader (with display filters), the standard
#       SQLAlchemy database session dependency, the current-user dependency
#       (HTTP Basic), and the redirect helper that carries notices between pages.

"""
Shared dependencies and globals for the finance tracker app.
"""

import os
from typing import Generator, Optional
from urllib.parse import urlencode

from fastapi import Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from db import SessionLocal
from models import User
from app.services.formatting import format_amount, format_currency, format_date, format_percent, month_label
from app.services.users import authenticate

APP_DIR = os.path.dirname(os.path.abspath(__file__))
TEMPLATES_DIR = os.path.join(APP_DIR, "templates")
STATIC_DIR = os.path.join(APP_DIR, "static")

# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------

# Jinja2 templates loader (used by all HTML-rendering routes)
templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.filters["currency"] = format_currency
templates.env.filters["amount"] = format_amount
templates.env.filters["nicedate"] = format_date
templates.env.filters["percent"] = format_percent
templates.env.filters["month_label"] = month_label

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# -------------------------------------------------------------------
# Current user
# -------------------------------------------------------------------

security = HTTPBasic()


def get_current_user(
    credentials: HTTPBasicCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the HTTP Basic credentials to a user, or answer 401.

    Every row a route reads or writes is filtered by this user's id.
    """
    user = authenticate(db, credentials.username, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user

# -------------------------------------------------------------------
# Notices
# -------------------------------------------------------------------

def redirect_with(url: str, message: Optional[str] = None, error: Optional[str] = None) -> RedirectResponse:
    """
    303 redirect after a POST. The target page re-reads every collection it
    shows, and the optional message/error is displayed once as a notice.
    """
    params = {}
    if message:
        params["message"] = message
    if error:
        params["error"] = error
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url=url, status_code=303)


def get_or_404(db: Session, model, row_id: int, user: User):
    """Fetch a row owned by user; other users' rows look missing."""
    row = db.query(model).filter(model.id == row_id, model.user_id == user.id).first()
    if row is None:
        raise HTTPException(status_code=404, detail=f"{model.__name__} not found")
    return row
