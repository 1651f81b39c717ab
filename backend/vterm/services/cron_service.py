# Overview: Service-layer operations for the monthly expired-card sweep.

from __future__ import annotations

import logging
import re

from sqlalchemy import or_

from ..errors import AppError, MissingField
from ..extensions import db
from ..models import Card
from ..time_utils import previous_month_year
from . import card_service

logger = logging.getLogger(__name__)

_MONTH_YEAR = re.compile(r"^(\d{1,2})/(\d{4})$")


def expiration_variants(month_year: str) -> list[str]:
    """
    "3/2024" -> ["3/2024", "03/2024"].

    Stripe.js reports expirations zero-padded but older rows may not be.
    """
    match = _MONTH_YEAR.match(month_year.strip())
    if not match:
        raise MissingField("monthYear", "The month and year must be given as M/YYYY.")
    month, year = int(match.group(1)), match.group(2)
    return [f"{month}/{year}", f"{month:02d}/{year}"]


def remove_expired_cards(month_year: str | None = None) -> int:
    """
    Remove every card expiring in month_year (default: last month).

    Each removal goes through the registry so Stripe, the database and the
    cache stay consistent. A failure stops the sweep and propagates; cards
    removed before it stay removed. Returns the number removed.
    """
    month_year = month_year or previous_month_year()
    variants = expiration_variants(month_year)

    rows = (
        db.session.query(Card.id, Card.customer_name)
        .filter(or_(*[Card.card_expiration == v for v in variants]))
        .order_by(Card.id.asc())
        .all()
    )

    removed = 0
    for row in rows:
        try:
            card_service.remove(row.id)
        except AppError as exc:
            logger.error("Could not remove expired card %s (%s): %s", row.id, row.customer_name, exc.message)
            raise
        logger.info("Removed expired card %s (%s)", row.id, row.customer_name)
        removed += 1

    logger.info("Expired card sweep for %s removed %d card(s)", month_year, removed)
    return removed
