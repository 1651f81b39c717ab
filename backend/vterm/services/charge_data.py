# Overview: Flatten Stripe charge and refund-event payloads into report/receipt rows.

from __future__ import annotations

from ..money import format_amount
from ..time_utils import iso8601_from_unix


METADATA_KEYS = (
    "customer_name",
    "customer_id",
    "invoice_num",
    "po_num",
    "processed_by",
    "authorized_by",
    "auto_charge",
    "auto_charge_referrer",
    "auto_charge_reason",
)


def card_details(charge: dict) -> dict:
    """
    The card block of a charge.

    Legacy customer/source charges carry it as `source` (a card object, or
    a source object with a nested `card`); newer API versions only fill
    payment_method_details.card.
    """
    source = charge.get("source") or {}
    if isinstance(source.get("card"), dict):
        return source["card"]
    if source.get("object") == "card" or "last4" in source:
        return source
    pmd = charge.get("payment_method_details") or {}
    return pmd.get("card") or {}


def _expiration(card: dict) -> str:
    month = card.get("exp_month")
    year = card.get("exp_year")
    if not month or not year:
        return ""
    return f"{int(month)}/{int(year)}"


def _customer_token(charge: dict) -> str:
    customer = charge.get("customer")
    if isinstance(customer, dict):
        return customer.get("id") or ""
    return customer or ""


def extract_charge(charge: dict) -> dict:
    """
    Normalized row for a captured charge, or {} when the charge was not
    captured (declined or never processed). Callers skip empty rows.
    """
    if not charge.get("captured"):
        return {}

    card = card_details(charge)
    metadata = charge.get("metadata") or {}
    amount_cents = int(charge.get("amount") or 0)

    data = {
        "charge_id": charge.get("id", ""),
        "amount_cents": amount_cents,
        "amount_dollars": format_amount(amount_cents),
        "captured": True,
        "captured_str": "true",
        "timestamp": iso8601_from_unix(charge.get("created") or 0),
        "stripe_customer_id": _customer_token(charge),
        "cardholder": card.get("name") or "",
        "expiration": _expiration(card),
        "last4": card.get("last4") or "",
        "card_brand": card.get("brand") or "",
    }
    for key in METADATA_KEYS:
        data[key] = metadata.get(key) or ""

    # processed_by is shown as "username" in reports; a captured charge
    # whose capture notes were never written falls back to who authorized it
    data["username"] = data["processed_by"] or data["authorized_by"]
    data["auto_charge"] = data["auto_charge"].lower() == "true"
    return data


def extract_refunds_from_events(events) -> list[dict]:
    """
    One row per refund found in charge.refunded events.

    A single event carries the whole refunded charge, and a charge can have
    several partial refunds, so one event can yield many rows.
    """
    rows = []
    for event in events:
        if event.get("type") != "charge.refunded":
            continue

        charge = (event.get("data") or {}).get("object") or {}
        card = card_details(charge)
        metadata = charge.get("metadata") or {}

        refund_list = (charge.get("refunds") or {}).get("data") or []
        for refund in refund_list:
            amount_cents = int(refund.get("amount") or 0)
            refund_meta = refund.get("metadata") or {}
            rows.append({
                "refunded": True,
                "charge_id": charge.get("id", ""),
                "amount_cents": amount_cents,
                "amount_dollars": format_amount(amount_cents),
                "timestamp": iso8601_from_unix(refund.get("created") or 0),
                "invoice_num": metadata.get("invoice_num") or "",
                "customer_name": metadata.get("customer_name") or "",
                "last4": card.get("last4") or "",
                "expiration": _expiration(card),
                "reason": refund.get("reason") or "unknown",
                "username": refund_meta.get("processed_by") or "unknown",
            })
    return rows
