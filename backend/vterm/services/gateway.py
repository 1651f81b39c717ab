# Overview: Thin wrapper over the Stripe SDK; every call returns plain dicts.

"""
Stripe gateway.

All Stripe objects are converted to plain dicts at this boundary so the rest
of the app (extraction, caching, templates, tests) never deals with
StripeObject instances.

TIMEOUTS: the HTTP client is built with an explicit timeout and Stripe's own
network retries are disabled, so a charge call can never run past
CHARGE_TIMEOUT_SECONDS on its own.

ERRORS: stripe.StripeError (and subclasses) propagate unchanged. Callers
classify them; stripe.APIConnectionError means the request did not complete.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

import stripe

logger = logging.getLogger(__name__)


def _to_dict(obj) -> dict:
    if obj is None:
        return {}
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    return obj.to_dict()


class StripeGateway:
    """Payment processor calls used by the card registry, charges and reports."""

    def __init__(self):
        self.timeout = 10.0

    def init_app(self, app) -> None:
        self.timeout = float(app.config.get("CHARGE_TIMEOUT_SECONDS", 10))

        stripe.api_key = app.config.get("STRIPE_SECRET_KEY") or None
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

        app.extensions["gateway"] = self

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def create_customer(self, description: str, card_token: str) -> dict:
        """Save a one-time card token as the default source of a new customer."""
        cust = stripe.Customer.create(description=description, source=card_token)
        return _to_dict(cust)

    def delete_customer(self, customer_token: str) -> None:
        stripe.Customer.delete(customer_token)

    # =========================================================================
    # CHARGES
    # =========================================================================

    def create_charge(
        self,
        *,
        customer: str,
        amount: int,
        currency: str,
        description: str,
        statement_descriptor: str,
        metadata: dict[str, str],
        capture: bool = True,
        level3: dict | None = None,
    ) -> dict:
        """capture=False only authorizes; the charge must be captured later."""
        params: dict[str, Any] = {
            "customer": customer,
            "amount": amount,
            "currency": currency,
            "description": description,
            "statement_descriptor": statement_descriptor,
            "metadata": metadata,
            "capture": capture,
        }
        if level3:
            params["level3"] = level3
        return _to_dict(stripe.Charge.create(**params))

    def update_charge_metadata(self, charge_id: str, metadata: dict[str, str]) -> dict:
        return _to_dict(stripe.Charge.modify(charge_id, metadata=metadata))

    def capture_charge(self, charge_id: str) -> dict:
        """Capture a charge created with capture=False for its full amount."""
        return _to_dict(stripe.Charge.capture(charge_id))

    def retrieve_charge(self, charge_id: str) -> dict:
        return _to_dict(stripe.Charge.retrieve(charge_id))

    def list_charges(self, start: int, end: int, customer: str | None = None) -> Iterator[dict]:
        """All charges created in [start, end] (unix seconds), following pagination."""
        params: dict[str, Any] = {
            "created": {"gte": start, "lte": end},
            "limit": 100,
        }
        if customer:
            params["customer"] = customer

        for chg in stripe.Charge.list(**params).auto_paging_iter():
            yield _to_dict(chg)

    # =========================================================================
    # REFUNDS
    # =========================================================================

    def create_refund(
        self,
        *,
        charge: str,
        amount: int,
        reason: str | None,
        metadata: dict[str, str],
    ) -> dict:
        params: dict[str, Any] = {
            "charge": charge,
            "amount": amount,
            "metadata": metadata,
        }
        if reason:
            params["reason"] = reason
        return _to_dict(stripe.Refund.create(**params))

    def list_refund_events(self, start: int, end: int) -> Iterator[dict]:
        """
        charge.refunded events in [start, end].

        Stripe has no date-filtered refund list that carries our charge
        metadata, so refunds are read back from the event log.
        """
        events = stripe.Event.list(
            type="charge.refunded",
            created={"gte": start, "lte": end},
            limit=100,
        )
        for event in events.auto_paging_iter():
            yield _to_dict(event)


def get_gateway():
    """The gateway registered on the current app (tests swap in a fake)."""
    from flask import current_app

    return current_app.extensions["gateway"]
