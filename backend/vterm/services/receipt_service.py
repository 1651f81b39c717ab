# Overview: Service-layer operations that compose a printable receipt.

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import stripe

from ..errors import ChargeNotFound, MissingField, ProcessorError, StoreError
from ..extensions import cache
from ..time_utils import parse_iso8601
from . import settings_service
from .charge_data import extract_charge
from .gateway import get_gateway

logger = logging.getLogger(__name__)

NOT_SET_NOTICE = "**Company info has not been set yet.**"
RECEIPT_TIME_FORMAT = "%Y-%m-%d @ %I:%M:%S%p"


class CompanyInfoMissing(StoreError):
    error_type = "companyInfoMissing"
    default_message = "Company info has not been set yet. Please contact an administrator to fix this."


def load_charge(charge_id: str) -> dict:
    """Charge dict from the cache, else from Stripe (then cached)."""
    if not charge_id:
        raise MissingField("chg_id", "No charge id was given.")

    charge = cache.get(charge_id)
    if charge is not None:
        return charge

    try:
        charge = get_gateway().retrieve_charge(charge_id)
    except stripe.InvalidRequestError as exc:
        logger.warning("Charge %s not found at Stripe: %s", charge_id, exc)
        raise ChargeNotFound()
    except stripe.StripeError as exc:
        raise ProcessorError(exc.user_message or str(exc))

    cache.set(charge_id, charge)
    return charge


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown report timezone %r; using UTC", name)
        return ZoneInfo("UTC")


def display_time(iso_timestamp: str, timezone_name: str) -> str:
    if not iso_timestamp:
        return "*not captured yet*"
    dt = parse_iso8601(iso_timestamp).astimezone(_zone(timezone_name))
    return dt.strftime(RECEIPT_TIME_FORMAT)


def _company_block(company) -> dict:
    return {
        "company_name": company.company_name,
        "street": company.street,
        "suite": company.suite,
        "city": company.city,
        "state": company.state,
        "postal": company.postal_code,
        "country": company.country,
        "phone_num": company.phone_num,
        "email": company.email,
        "statement_descriptor": company.statement_descriptor,
    }


def build_receipt(charge_id: str) -> dict:
    """
    Template data for one charge.

    Raises CompanyInfoMissing when the company profile was never filled in;
    the route renders a single notification page for that and every other
    error.
    """
    company = settings_service.get_company()
    if not company.company_name:
        raise CompanyInfoMissing()
    timezone_name = settings_service.get_app_settings().report_timezone

    charge = load_charge(charge_id)
    data = extract_charge(charge)
    if not data:
        # uncaptured charge; show what Stripe has without a timestamp
        data = {
            "customer_name": (charge.get("metadata") or {}).get("customer_name", ""),
            "amount_dollars": "",
            "captured_str": "false",
            "timestamp": "",
        }

    receipt = _company_block(company)
    receipt.update({
        "customer": data.get("customer_name", ""),
        "cardholder": data.get("cardholder", ""),
        "card_brand": data.get("card_brand", ""),
        "last4": data.get("last4", ""),
        "expiration": data.get("expiration", ""),
        "captured": data.get("captured_str", "false"),
        "timestamp": display_time(data.get("timestamp", ""), timezone_name),
        "amount": data.get("amount_dollars", ""),
        "invoice": data.get("invoice_num", ""),
        "po": data.get("po_num", ""),
        "timezone": timezone_name,
    })
    return receipt


def build_preview() -> dict:
    """Receipt filled with sample charge data so admins can check the layout."""
    company = settings_service.get_company()
    receipt = _company_block(company)
    if not company.company_name:
        receipt["company_name"] = NOT_SET_NOTICE
        receipt["street"] = "**Please contact an administrator to fix this.**"
    timezone_name = settings_service.get_app_settings().report_timezone

    receipt.update({
        "customer": "ACME Dynamite Corp.",
        "cardholder": "Wile E. Coyote",
        "card_brand": "Visa",
        "last4": "4242",
        "expiration": "01/2025",
        "captured": "true",
        "timestamp": display_time("2025-01-02T08:16:32.000Z", timezone_name),
        "amount": "256.04",
        "invoice": "344402",
        "po": "3345",
        "timezone": timezone_name,
    })
    return receipt
