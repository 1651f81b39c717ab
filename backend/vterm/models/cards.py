from __future__ import annotations

from ..extensions import db
from ..time_utils import iso8601


class Card(db.Model):
    """
    A saved customer card.

    Three identifiers meet here:
    - id: internal record id, used by the UI
    - customer_id: optional CRM key typed by the operator (unique when set)
    - processor_token: the Stripe customer id, the only handle that can charge

    Empty customer_id is stored as NULL so the unique constraint only
    applies to real values.
    """
    __tablename__ = "cards"
    __table_args__ = (
        db.UniqueConstraint("customer_id", name="uq_cards_customer_id"),
        db.Index("ix_cards_customer_name", "customer_name"),
        db.Index("ix_cards_card_expiration", "card_expiration"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.String(255), nullable=True)
    customer_name = db.Column(db.String(255), nullable=False)
    cardholder = db.Column(db.String(255), nullable=False)

    # "MM/YYYY" as reported by Stripe.js
    card_expiration = db.Column(db.String(7), nullable=False)
    card_last4 = db.Column(db.String(4), nullable=False)

    processor_token = db.Column(db.String(255), nullable=False, unique=True)

    added_by_user = db.Column(db.String(255), nullable=False, default="")
    created = db.Column(db.String(32), nullable=False, default=iso8601)

    # Unix seconds of the last successful charge; 0 until first use
    last_used_timestamp = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id or "",
            "customer_name": self.customer_name,
            "cardholder": self.cardholder,
            "card_expiration": self.card_expiration,
            "card_last4": self.card_last4,
            "processor_token": self.processor_token,
            "added_by_user": self.added_by_user,
            "created": self.created,
            "last_used_timestamp": self.last_used_timestamp,
        }
