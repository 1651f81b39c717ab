from __future__ import annotations

from ..extensions import db
from ..time_utils import iso8601

# Reserved username of the bootstrap super-admin.
ADMIN_USERNAME = "administrator"


class User(db.Model):
    """
    Employee account.

    Users are never deleted; access is revoked by setting active=False.
    The super-admin (ADMIN_USERNAME) always holds every flag and cannot be
    edited through the API.
    """
    __tablename__ = "users"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password; never serialized
    password_hash = db.Column(db.String(255), nullable=False)

    add_cards = db.Column(db.Boolean, nullable=False, default=False)
    remove_cards = db.Column(db.Boolean, nullable=False, default=False)
    charge_cards = db.Column(db.Boolean, nullable=False, default=False)
    view_reports = db.Column(db.Boolean, nullable=False, default=False)
    administrator = db.Column(db.Boolean, nullable=False, default=False)
    active = db.Column(db.Boolean, nullable=False, default=True)

    # ISO-8601 UTC, millisecond precision
    created = db.Column(db.String(32), nullable=False, default=iso8601)

    @property
    def is_super_admin(self) -> bool:
        return self.username == ADMIN_USERNAME

    def has_permission(self, flag: str) -> bool:
        return bool(self.active and getattr(self, flag))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "add_cards": self.add_cards,
            "remove_cards": self.remove_cards,
            "charge_cards": self.charge_cards,
            "view_reports": self.view_reports,
            "administrator": self.administrator,
            "active": self.active,
            "created": self.created,
        }
