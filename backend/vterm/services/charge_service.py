# Overview: Service-layer operations for charging saved cards and issuing refunds.

"""
Charge engine.

Interactive charges (an employee in the UI) and auto-charges (another app
holding the api key) share one pipeline, process_charge(). The origin of a
charge only changes the metadata written to Stripe and whether the card may
be removed afterwards.

    validate -> load customer -> load descriptor -> charge at Stripe
        -> classify outcome -> bookkeeping (success only)

OUTCOMES
- success: charge cached under its Stripe id, card marked as used, card
  optionally removed, CardCounts incremented
- authorize-only: same bookkeeping, but Stripe only holds the funds; the
  charge is settled later through capture()
- deadline reached or connection failure: ChargeTimeout; the charge may
  still have gone through so the user is told to check the report
- Stripe API error: ProcessorError carrying Stripe's message
- anything else: UnknownProcessorFailure

Nothing after the Stripe call can turn a successful charge into an error
response; bookkeeping failures are logged only.
"""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass

import stripe
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import (
    AmountBelowMinimum,
    AppError,
    ChargeTimeout,
    InvalidRefundReason,
    MissingField,
    MissingStatementDescriptor,
    NameMismatch,
    ProcessorError,
    Unauthorized,
    UnknownProcessorFailure,
)
from ..extensions import cache, db
from ..models import CardCounts
from ..money import CURRENCY, MIN_CHARGE, format_amount, parse_amount, parse_id, parse_minor_units
from ..time_utils import iso8601
from . import card_service, settings_service
from .charge_data import card_details
from .concurrency import run_in_transaction
from .deadline import DeadlineExceeded, run_with_deadline
from .gateway import get_gateway

logger = logging.getLogger(__name__)

BLANK_FIELD = "*blank*"

REFUND_REASONS = ("duplicate", "requested_by_customer", "fraudulent", "")

# Stripe rejects level 3 fields longer than these
LEVEL3_LIMITS = {"customer_reference": 17, "merchant_reference": 25}
LINE_ITEM_LIMITS = {"product_code": 12, "product_description": 26}

# Stripe brand string (lower-cased) -> CardCounts column
BRAND_COLUMNS = {
    "visa": "visa",
    "american express": "american_express",
    "amex": "american_express",
    "mastercard": "master_card",
    "discover": "discover",
    "jcb": "jcb",
    "diners club": "diners_club",
    "diners": "diners_club",
}

COUNTER_COLUMNS = (
    "total", "visa", "american_express", "master_card",
    "discover", "jcb", "diners_club", "unknown",
)


@dataclass(frozen=True)
class Interactive:
    """Charge placed by a logged-in employee."""
    username: str


@dataclass(frozen=True)
class Api:
    """Charge placed by another application using the api key."""
    referrer: str
    reason: str = ""


def check_minimum(cents: int) -> None:
    if cents < MIN_CHARGE:
        raise AmountBelowMinimum(f"You must charge at least {MIN_CHARGE} cents.")


# =============================================================================
# ENTRY POINTS
# =============================================================================

def manual_charge(
    *,
    datastore_id: str,
    customer_name: str,
    amount: str,
    invoice: str,
    po: str,
    charge_and_remove: bool,
    username: str,
    authorize_only: bool = False,
) -> dict:
    if not datastore_id:
        raise MissingField(
            "datastoreId",
            "A customer ID should have been submitted automatically but was not. Please contact an administrator.",
        )
    if not amount:
        raise MissingField("amount", "No amount was provided. You cannot charge a card nothing!")

    cents = parse_amount(amount)
    check_minimum(cents)

    customer = card_service.find_by_id(parse_id(datastore_id))
    if customer_name != customer["customer_name"]:
        raise NameMismatch()

    return process_charge(
        Interactive(username=username),
        customer,
        cents,
        invoice,
        po,
        remove_after=charge_and_remove,
        authorize_only=authorize_only,
    )


def verify_api_key(api_key: str) -> None:
    """Raises Unauthorized unless api_key matches the configured key exactly."""
    if not api_key:
        raise MissingField(
            "api_key",
            "There was no api key given. This must be given in the 'api_key' field to authenticate this request.",
        )
    expected = settings_service.get_app_settings().api_key
    if not expected or not hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
        raise Unauthorized()


def auto_charge(
    *,
    api_key: str,
    customer_id: str,
    amount: str,
    invoice: str,
    po: str,
    auto_charge_flag: bool,
    referrer: str,
    reason: str,
    level3_provided: bool = False,
    level3_params: str = "",
) -> dict:
    """
    Charge by CRM customer id. The amount is already in cents.

    The api key is checked before anything else so an unauthenticated caller
    learns nothing about customers. Level 3 data that cannot be parsed is
    dropped and the charge goes through without it.
    """
    verify_api_key(api_key)

    if not customer_id:
        raise MissingField("customer_id", "A customer ID should have been submitted.")
    if not amount:
        raise MissingField("amount", "No amount was provided.")
    if not auto_charge_flag:
        raise MissingField(
            "auto_charge",
            "The 'auto_charge' value was not provided. This is required when trying to automatically process a charge.",
        )
    if not referrer:
        raise MissingField(
            "auto_charge_referrer",
            "There was no 'referrer' given. This should be the app that made this auto-charge request. "
            "This is used for logging.",
        )

    cents = parse_minor_units(amount)
    check_minimum(cents)

    customer = card_service.find_by_customer_id(customer_id)
    level3 = parse_level3(level3_params) if level3_provided else None
    return process_charge(Api(referrer=referrer, reason=reason), customer, cents, invoice, po, level3=level3)


def parse_level3(raw: str) -> dict | None:
    """
    Level 3 data (line items, references, shipping) for Stripe, from the
    JSON an auto-charge caller posts. Over-long references, product codes and
    descriptions are cut to Stripe's limits. Returns None when raw is not
    usable.
    """
    try:
        data = json.loads(raw or "")
        if not isinstance(data, dict):
            raise ValueError("level 3 params must be an object")

        level3 = {
            "customer_reference": str(data.get("customer_reference") or ""),
            "merchant_reference": str(data.get("merchant_reference") or ""),
            "shipping_address_zip": str(data.get("shipping_address_zip") or ""),
            "shipping_from_zip": str(data.get("shipping_from_zip") or ""),
            "shipping_amount": int(data.get("shipping_amount") or 0),
            "line_items": [],
        }
        for key, limit in LEVEL3_LIMITS.items():
            level3[key] = level3[key][:limit]

        for item in data.get("line_items") or []:
            if not isinstance(item, dict):
                raise ValueError("level 3 line items must be objects")
            line = {
                "product_code": str(item.get("product_code") or ""),
                "product_description": str(item.get("product_description") or ""),
                "quantity": int(item.get("quantity") or 0),
                "unit_cost": int(item.get("unit_cost") or 0),
                "tax_amount": int(item.get("tax_amount") or 0),
                "discount_amount": int(item.get("discount_amount") or 0),
            }
            for key, limit in LINE_ITEM_LIMITS.items():
                line[key] = line[key][:limit]
            level3["line_items"].append(line)
    except (TypeError, ValueError, OverflowError) as exc:
        logger.warning("Could not parse level 3 params, continuing without them: %s", exc)
        return None
    return level3


# =============================================================================
# SHARED PIPELINE
# =============================================================================

def build_metadata(
    origin, customer: dict, invoice: str, po: str, *, authorize_only: bool = False, level3: bool = False,
) -> dict[str, str]:
    metadata = {
        "customer_name": customer["customer_name"],
        "customer_id": customer.get("customer_id") or "",
        "appengine_datastore_id": str(customer["id"]),
        "invoice_num": invoice,
        "po_num": po,
    }
    if level3:
        metadata["level3_provided"] = "true"

    if isinstance(origin, Api):
        metadata["processed_by"] = "api"
        metadata["auto_charge"] = "true"
        metadata["auto_charge_referrer"] = origin.referrer
        if origin.reason:
            metadata["auto_charge_reason"] = origin.reason
    elif authorize_only:
        # processed_by is written when the charge is captured
        metadata["authorized_by"] = origin.username
        metadata["authorized_date"] = iso8601()
    else:
        metadata["processed_by"] = origin.username
    return metadata


def process_charge(
    origin,
    customer: dict,
    cents: int,
    invoice: str,
    po: str,
    *,
    remove_after: bool = False,
    authorize_only: bool = False,
    level3: dict | None = None,
) -> dict:
    # only employees may authorize without capturing
    authorize_only = authorize_only and isinstance(origin, Interactive)
    company = settings_service.get_company()
    if not company.statement_descriptor:
        raise MissingStatementDescriptor()

    # keep Stripe's dashboard readable when these are left empty
    invoice = invoice or BLANK_FIELD
    po = po or BLANK_FIELD

    gateway = get_gateway()
    timeout = float(current_app.config.get("CHARGE_TIMEOUT_SECONDS", 10))

    try:
        charge = run_with_deadline(
            gateway.create_charge,
            timeout,
            customer=customer["processor_token"],
            amount=cents,
            currency=CURRENCY,
            description=f"Charge for invoice: {invoice}, purchase order: {po}.",
            statement_descriptor=company.statement_descriptor,
            metadata=build_metadata(
                origin, customer, invoice, po, authorize_only=authorize_only, level3=bool(level3),
            ),
            capture=not authorize_only,
            level3=level3,
        )
    except (DeadlineExceeded, stripe.APIConnectionError) as exc:
        logger.warning("Charge for card %s timed out: %s", customer["id"], exc)
        raise ChargeTimeout()
    except stripe.StripeError as exc:
        logger.warning("Stripe rejected charge for card %s: %s", customer["id"], exc)
        raise ProcessorError(exc.user_message or str(exc))
    except Exception:
        logger.exception("Unexpected failure charging card %s", customer["id"])
        raise UnknownProcessorFailure()

    _after_success(origin, customer, charge, remove_after)

    return {
        "customer_name": customer["customer_name"],
        "cardholder": customer["cardholder"],
        "card_expiration": customer["card_expiration"],
        "card_last4": customer["card_last4"],
        "amount": format_amount(cents),
        "invoice": invoice,
        "po": po,
        "datetime": iso8601(),
        "charge_id": charge["id"],
        "authorized_only": authorize_only,
    }


def _after_success(origin, customer: dict, charge: dict, remove_after: bool) -> None:
    cache.set(charge["id"], charge)
    card_service.mark_used(customer["id"])

    if remove_after and isinstance(origin, Interactive):
        try:
            card_service.remove(customer["id"])
        except AppError as exc:
            logger.error("Charged card %s but could not remove it: %s", customer["id"], exc.message)

    record_card_brand(card_details(charge).get("brand"))


# =============================================================================
# BOOKKEEPING
# =============================================================================

def record_card_brand(brand: str | None) -> None:
    """Increment CardCounts.total and the brand's counter in one transaction."""
    column = BRAND_COLUMNS.get((brand or "").strip().lower())
    if column is None:
        logger.warning("Unknown card brand %r; counting as unknown", brand)
        column = "unknown"

    def _op():
        counts = db.session.get(CardCounts, 1, populate_existing=True)
        if counts is None:
            counts = CardCounts(id=1, **{name: 0 for name in COUNTER_COLUMNS})
            db.session.add(counts)
        counts.total += 1
        setattr(counts, column, getattr(counts, column) + 1)

    try:
        run_in_transaction(_op)
    except SQLAlchemyError:
        logger.exception("Could not update card counts for brand %r", brand)


def get_card_counts() -> dict:
    counts = db.session.get(CardCounts, 1)
    if counts is None:
        return {name: 0 for name in COUNTER_COLUMNS}
    return counts.to_dict()


# =============================================================================
# REFUNDS
# =============================================================================

def refund(*, charge_id: str, amount: str, reason: str, username: str) -> None:
    if not charge_id:
        raise MissingField(
            "chargeId",
            "A charge ID was not provided. This is a serious error. Please contact an administrator.",
        )
    if not amount:
        raise MissingField("amount", "No amount was given to refund.")

    cents = parse_amount(amount)

    if reason not in REFUND_REASONS:
        raise InvalidRefundReason()

    try:
        get_gateway().create_refund(
            charge=charge_id,
            amount=cents,
            reason=reason or None,
            metadata={"processed_by": username},
        )
    except stripe.StripeError as exc:
        logger.warning("Stripe rejected refund for %s: %s", charge_id, exc)
        raise ProcessorError(exc.user_message or str(exc))

    # the cached charge no longer reflects the refund
    cache.delete(charge_id)


# =============================================================================
# CAPTURE
# =============================================================================

def capture(*, charge_id: str, username: str) -> dict:
    """
    Settle a charge that was only authorized.

    The capturing user is written to the charge first; a failure there is
    logged and the capture still runs.
    """
    if not charge_id:
        raise MissingField(
            "chargeId",
            "A charge ID was not provided. This is a serious error. Please contact an administrator.",
        )

    gateway = get_gateway()
    timeout = float(current_app.config.get("CHARGE_TIMEOUT_SECONDS", 10))

    try:
        gateway.update_charge_metadata(charge_id, {"processed_by": username, "processed_date": iso8601()})
    except stripe.StripeError as exc:
        logger.warning("Could not record capture details on %s: %s", charge_id, exc)

    try:
        charge = run_with_deadline(gateway.capture_charge, timeout, charge_id)
    except (DeadlineExceeded, stripe.APIConnectionError) as exc:
        logger.warning("Capture of %s timed out: %s", charge_id, exc)
        raise ChargeTimeout()
    except stripe.StripeError as exc:
        logger.warning("Stripe refused to capture %s: %s", charge_id, exc)
        raise ProcessorError(f"Could not capture charge. {exc.user_message or exc}")

    cache.set(charge["id"], charge)

    return {
        "charge_id": charge["id"],
        "amount": format_amount(charge.get("amount") or 0),
        "captured": bool(charge.get("captured")),
        "datetime": iso8601(),
    }
