# Overview: Conversions between dollar strings, integer cents and record ids.

from __future__ import annotations

import math

from .errors import BadAmount, BadID


# Lowest charge the app will allow, in cents.
# Stripe takes $0.30 + 2.9% so anything smaller costs more than it collects.
MIN_CHARGE = 50

CURRENCY = "usd"


def parse_amount(amount: str) -> int:
    """
    Convert a dollar amount typed in the UI ("12.56") into integer cents (1256).

    float(x) * 100 can land a hair under or over the true cent
    (32.55 -> 3254.9999999999995, 32.52 -> 3252.0000000000005), so half a
    cent is added before flooring.

    Raises BadAmount for anything that is not a finite, non-negative number.
    """
    if amount is None:
        raise BadAmount()
    try:
        value = float(str(amount).strip())
    except ValueError:
        raise BadAmount()

    if math.isnan(value) or math.isinf(value) or value < 0:
        raise BadAmount()

    return int(math.floor(value * 100 + 0.5))


def parse_minor_units(amount: str) -> int:
    """Parse an amount that is already in cents ("1256"). Used by api charges."""
    s = str(amount or "").strip()
    if not (s.isascii() and s.isdigit()):
        raise BadAmount("Could not convert amount to integer.")
    return int(s)


def format_amount(cents: int) -> str:
    """1256 -> "12.56"; no currency symbol."""
    cents = int(cents)
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{whole}.{frac:02d}"


def parse_id(value) -> int:
    """Parse a base-10 record id. Empty or invalid input raises BadID."""
    s = str(value if value is not None else "").strip()
    if not s:
        raise BadID()
    try:
        return int(s, 10)
    except ValueError:
        raise BadID()
