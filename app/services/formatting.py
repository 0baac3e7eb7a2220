# app/services/formatting.py
#
# Display helpers registered as Jinja2 filters (see app/deps.py).

from datetime import date, datetime

from config import CURRENCY_SYMBOL, CURRENCY_DECIMALS


def format_currency(value, symbol: str = CURRENCY_SYMBOL, decimals: int = CURRENCY_DECIMALS) -> str:
    """
    Format a number the way Indonesian banks print it: 'Rp 1.234.567'.

    Thousands are separated by '.', decimals (if any) by ','.
    Negative values get a leading minus: '-Rp 50.000'.
    """
    amount = float(value or 0.0)
    sign = "-" if amount < 0 else ""
    digits = _indonesian_digits(f"{abs(amount):,.{decimals}f}")
    return f"{sign}{symbol} {digits}"


def format_amount(value) -> str:
    """Plain amount for pre-filled form fields: 250000.0 -> '250.000', 1500.5 -> '1.500,5'."""
    digits = f"{float(value or 0.0):,.2f}".rstrip("0").rstrip(".")
    return _indonesian_digits(digits)


def _indonesian_digits(digits: str) -> str:
    # '1,234,567.89' -> '1.234.567,89'
    return digits.replace(",", "_").replace(".", ",").replace("_", ".")


def format_date(value) -> str:
    """'2026-10-05' or date(2026, 10, 5) -> '5 October 2026'. '-' when missing."""
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        value = datetime.strptime(value, "%Y-%m-%d").date()
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day} {value.strftime('%B %Y')}"


def format_percent(value) -> str:
    return f"{float(value or 0.0):.0f}%"


def month_label(value: date) -> str:
    return value.strftime("%B %Y")
