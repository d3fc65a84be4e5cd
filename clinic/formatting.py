"""
Validated-input and display helpers shared by the views and the wizard.

Numbers are grouped the Colombian way ("1.500.000") through Babel, so what
the staff types and what they read back match the invoices they know.
"""
# coldesthetic/clinic/formatting.py

import datetime
import math
import re

from babel.dates import format_date
from babel.numbers import format_decimal

from clinic.config import LOCALE

MONTH_ABBREVIATIONS = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]

_NON_DIGITS = re.compile(r"\D")
_CELLPHONE_GROUPS = re.compile(r"(\d{3})(\d{3})(\d{0,4})")


def digits_only(value) -> str:
    return _NON_DIGITS.sub("", str(value or ""))


def format_price_input(raw: str) -> str:
    """Keeps only the digits of a typed price and groups them for display.

    Args:
        raw (str): Whatever the user typed, possibly already grouped.

    Returns:
        str: The grouped amount (e.g. "1.500.000"), or "" when there are no digits.
    """
    digits = digits_only(raw)
    if not digits:
        return ""
    return format_decimal(int(digits), locale=LOCALE)


def parse_price(text) -> int:
    """Strips thousands separators from a displayed price; blank means 0."""
    digits = digits_only(text)
    return int(digits) if digits else 0


def format_cop(value) -> str:
    """Formats an amount as whole Colombian pesos, e.g. "$ 1.500.000"."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(number):
        return ""
    return f"$ {format_decimal(int(round(number)), locale=LOCALE)}"


def format_cellphone(raw: str) -> str:
    """Formats up to ten digits as "300 123 4567"."""
    digits = digits_only(raw)[:10]

    def _group(match):
        first, second, rest = match.groups()
        return f"{first} {second} {rest}" if rest else f"{first} {second}"

    return _CELLPHONE_GROUPS.sub(_group, digits, count=1)


def parse_number(text):
    """Parses a decimal typed with either '.' or ',' as separator.

    Returns:
        float | None: The value, or None when the text is not a number.
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)
    clean = str(text).strip().replace(",", ".")
    if not clean:
        return None
    try:
        value = float(clean)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def compute_age(date_of_birth, today=None):
    """Returns completed years between a birth date and today, or None.

    A birth date in the future yields None.
    """
    if not date_of_birth:
        return None
    if isinstance(date_of_birth, str):
        try:
            date_of_birth = datetime.date.fromisoformat(date_of_birth[:10])
        except ValueError:
            return None
    today = today or datetime.date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age if age >= 0 else None


def format_date_es(value, fmt="long") -> str:
    """Renders an ISO date or timestamp in Spanish; returns the input if unparseable."""
    if not value:
        return "—"
    try:
        parsed = datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return format_date(parsed, format=fmt, locale="es")


def weekday_short_es(value) -> str:
    """Short Spanish weekday name ("lun", "mar", ...); "—" for a missing or malformed date."""
    try:
        parsed = datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        return "—"
    return format_date(parsed, format="EEE", locale="es")


def month_abbreviation(month) -> str:
    return MONTH_ABBREVIATIONS[(int(month) - 1) % 12]


def parse_amount(text):
    """Parses a peso amount typed as "1.500.000" or "1500000,50"; None when invalid."""
    if isinstance(text, (int, float)):
        return float(text)
    clean = str(text or "").strip().replace("$", "").replace(" ", "")
    if not clean:
        return None
    return parse_number(clean.replace(".", ""))
