# Overview: Service-layer operations for date-range charge and refund reports.

"""
Reports are computed live from Stripe; nothing is stored locally.

WINDOW: start and end are local calendar days in the browser's fixed UTC
offset. The end day is inclusive (end + 23:59:59).

FEES: estimated in cents from the company fee schedule as
    count * fixed_fee_cents + round_half_up(total_cents * percent_fee)
Refund fees are not estimated since Stripe only returns the fixed fee on
full refunds and partial vs full cannot be told apart from events alone.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from ..errors import MissingField
from ..money import format_amount, parse_id
from ..time_utils import format_tz_offset, local_day_window
from . import card_service, settings_service
from .charge_data import extract_charge, extract_refunds_from_events
from .gateway import get_gateway

logger = logging.getLogger(__name__)


def build_window(start_date: str, end_date: str, hours_to_utc: str) -> tuple[datetime, datetime, str]:
    """Returns (start, end, "+HHMM") for the inclusive day range."""
    if not start_date:
        raise MissingField("start-date", "You must supply a 'start-date'.")
    if not end_date:
        raise MissingField("end-date", "You must supply a 'end-date'.")
    if hours_to_utc in (None, ""):
        raise MissingField("timezone", "You must supply a 'timezone'.")

    try:
        offset = format_tz_offset(hours_to_utc)
        start, end = local_day_window(start_date, end_date, offset)
    except (ValueError, OverflowError):
        raise MissingField("start-date", "Could not convert the start or end date into a datetime.")
    return start, end, offset


def compute_fees(num_charges: int, total_cents: int, percent_fee: float, fixed_fee: float) -> int:
    """Estimated processing fees in cents. fixed_fee is in dollars, percent_fee a fraction."""
    fixed = num_charges * int(round(fixed_fee * 100))
    percent = int(math.floor(total_cents * percent_fee + 0.5))
    return fixed + percent


def charges_in_window(start: int, end: int, customer_token: str | None = None) -> tuple[list[dict], int]:
    """Captured charges in [start, end] and their total in cents."""
    rows = []
    total_cents = 0
    for charge in get_gateway().list_charges(start, end, customer=customer_token):
        data = extract_charge(charge)
        if not data:
            continue
        rows.append(data)
        total_cents += data["amount_cents"]
    return rows, total_cents


def refunds_in_window(start: int, end: int) -> tuple[list[dict], int]:
    rows = extract_refunds_from_events(get_gateway().list_refund_events(start, end))
    return rows, sum(r["amount_cents"] for r in rows)


def build_report(*, datastore_id: str, start_date: str, end_date: str, hours_to_utc: str, user: dict) -> dict:
    start, end, offset = build_window(start_date, end_date, hours_to_utc)
    start_unix = int(start.timestamp())
    end_unix = int(end.timestamp())

    customer_token = None
    if datastore_id:
        customer_token = card_service.find_by_id(parse_id(datastore_id))["processor_token"]

    charges, total_cents = charges_in_window(start_unix, end_unix, customer_token)
    refunds, refund_cents = refunds_in_window(start_unix, end_unix)

    company = settings_service.get_company()
    fee_cents = compute_fees(len(charges), total_cents, company.percent_fee, company.fixed_fee)

    return {
        "user_data": user,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "charges": charges,
        "refunds": refunds,
        "num_charges": len(charges),
        "num_refunds": len(refunds),
        "total_charges": format_amount(total_cents),
        "total_charges_less_fees": format_amount(total_cents - fee_cents),
        "total_refunds": format_amount(refund_cents),
        "timezone_offset": offset,
    }
