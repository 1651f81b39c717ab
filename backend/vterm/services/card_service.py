# Overview: Service-layer operations for saved customer cards.

"""
Customer/card registry.

A card row is written only after Stripe has accepted the one-time card token
and returned a customer token; the raw card number never reaches this app.

CACHE KEYS
- "<id>"            full card dict by internal id
- "list-of-cards"   [{id, customer_name}] for the card picker

Every add/remove drops "list-of-cards"; remove also drops the id key and the
CRM customer id key. Cache failures are logged by the cache and ignored here.
"""

from __future__ import annotations

import logging

import stripe
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    CustomerNotFound,
    DuplicateCustomerID,
    MissingField,
    ProcessorError,
    StoreError,
)
from ..extensions import cache, db
from ..models import Card
from ..time_utils import unix_now
from .cache_service import LIST_OF_CARDS_KEY
from .gateway import get_gateway
from . import settings_service

logger = logging.getLogger(__name__)


def _id_key(card_id: int) -> str:
    return str(card_id)


# =============================================================================
# LOOKUPS
# =============================================================================

def find_by_id(card_id: int) -> dict:
    """Full card dict by internal id; warms from the cache."""
    cached = cache.get(_id_key(card_id))
    if cached is not None:
        return cached

    try:
        card = db.session.get(Card, card_id)
    except SQLAlchemyError as exc:
        logger.error("Card lookup failed for id %s: %s", card_id, exc)
        raise StoreError("An error occurred while looking up the customer's Stripe information.")
    if card is None:
        raise CustomerNotFound()

    data = card.to_dict()
    cache.set(_id_key(card_id), data)
    return data


def find_by_customer_id(customer_id: str) -> dict:
    """Full card dict by CRM customer id."""
    if not customer_id:
        raise CustomerNotFound()
    try:
        card = db.session.query(Card).filter_by(customer_id=customer_id).first()
    except SQLAlchemyError as exc:
        logger.error("Card lookup failed for customer id %s: %s", customer_id, exc)
        raise StoreError("An error occurred while looking up the customer's Stripe information.")
    if card is None:
        raise CustomerNotFound()
    return card.to_dict()


def list_cards() -> list[dict]:
    """[{id, customer_name}] ordered by customer name, cached."""
    cached = cache.get(LIST_OF_CARDS_KEY)
    if cached is not None:
        return cached

    try:
        rows = (
            db.session.query(Card.id, Card.customer_name)
            .order_by(Card.customer_name.asc(), Card.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.error("Could not list cards: %s", exc)
        raise StoreError("Error retrieving list of cards.")

    data = [{"id": row.id, "customer_name": row.customer_name} for row in rows]
    cache.set(LIST_OF_CARDS_KEY, data)
    return data


# =============================================================================
# ADD / REMOVE
# =============================================================================

def add(
    *,
    customer_id: str,
    customer_name: str,
    cardholder: str,
    card_token: str,
    card_exp: str,
    card_last4: str,
    added_by: str,
) -> dict:
    """
    Save a card: validate, check the CRM id is free, create the Stripe
    customer, then persist the row with Stripe's customer token.
    """
    if not customer_name:
        raise MissingField("customerName", "You did not provide the customer's name.")
    if not cardholder:
        raise MissingField("cardholder", "You did not provide the cardholder's name.")
    if not card_token:
        raise MissingField(
            "cardToken",
            "A serious error occurred; the card token is missing. Please refresh the page and try again.",
        )
    if not card_exp:
        raise MissingField(
            "cardExp",
            "The card's expiration date is missing from Stripe. Please refresh the page and try again.",
        )
    if not card_last4:
        raise MissingField(
            "cardLast4",
            "The card's last four digits are missing from Stripe. Please refresh the page and try again.",
        )

    if not customer_id and settings_service.get_app_settings().require_customer_id:
        raise MissingField("customerId", "You must provide a customer ID.")

    if customer_id:
        try:
            exists = db.session.query(Card.id).filter_by(customer_id=customer_id).first()
        except SQLAlchemyError as exc:
            logger.error("Customer id uniqueness check failed: %s", exc)
            raise StoreError(
                "An error occurred while verifying this customer ID does not already exist. "
                "Please try again or leave the customer ID blank."
            )
        if exists is not None:
            raise DuplicateCustomerID()

    try:
        stripe_customer = get_gateway().create_customer(description=customer_name, card_token=card_token)
    except stripe.StripeError as exc:
        raise ProcessorError(exc.user_message or str(exc))

    card = Card(
        customer_id=customer_id or None,
        customer_name=customer_name,
        cardholder=cardholder,
        card_expiration=card_exp,
        card_last4=card_last4,
        processor_token=stripe_customer["id"],
        added_by_user=added_by,
    )
    db.session.add(card)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race on customer_id; the Stripe customer is now orphaned
        db.session.rollback()
        _delete_at_processor(stripe_customer["id"])
        raise DuplicateCustomerID()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Could not save card: %s", exc)
        raise StoreError("There was an error while saving this customer. Please try again.")

    cache.delete(LIST_OF_CARDS_KEY)
    return card.to_dict()


def _delete_at_processor(token: str) -> None:
    try:
        get_gateway().delete_customer(token)
    except stripe.StripeError as exc:
        # worst case an orphaned customer stays in the Stripe dashboard
        logger.warning("Could not delete Stripe customer %s: %s", token, exc)


def remove(card_id: int) -> None:
    """
    Remove a card everywhere: Stripe (best effort), the database, then the
    three cache keys.
    """
    try:
        card = db.session.get(Card, card_id)
    except SQLAlchemyError as exc:
        logger.error("Card lookup failed for id %s: %s", card_id, exc)
        raise StoreError("There was an error while trying to delete this customer. Please try again.")
    if card is None:
        raise CustomerNotFound()

    customer_id = card.customer_id
    _delete_at_processor(card.processor_token)

    db.session.delete(card)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Could not delete card %s: %s", card_id, exc)
        raise StoreError("There was an error while trying to delete this customer. Please try again.")

    cache.delete(_id_key(card_id))
    if customer_id:
        cache.delete(customer_id)
    cache.delete(LIST_OF_CARDS_KEY)


def mark_used(card_id: int) -> None:
    """Record the time of the last successful charge. Failures are only logged."""
    try:
        card = db.session.get(Card, card_id)
        if card is None:
            return
        card.last_used_timestamp = unix_now()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Could not update last used timestamp for card %s: %s", card_id, exc)
        return

    cache.delete(_id_key(card_id))
