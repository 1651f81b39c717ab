# Overview: Service-layer operations for users, passwords and permissions.

"""
Users and permissions.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum MIN_PASSWORD_LENGTH characters; no composition rules
- At most MAX_PASSWORD_BYTES bytes of UTF-8, bcrypt refuses anything longer
- The super-admin ("administrator") is created once through the setup page
  and can never be edited afterwards
- Public user dicts are cached under "user:<id>"; every mutation drops the
  cached copy. Permission checks never read the cache.
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    AdminAlreadyExists,
    CannotUpdateSelf,
    CannotUpdateSuperAdmin,
    DuplicateUsername,
    InvalidCredentials,
    MissingField,
    PasswordsDoNotMatch,
    PasswordTooLong,
    PasswordTooShort,
    StoreError,
    UserInactive,
    UserNotFound,
)
from ..extensions import cache, db
from ..models import ADMIN_USERNAME, User
from . import settings_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 10
MAX_PASSWORD_BYTES = 72
BCRYPT_ROUNDS = 12

PERMISSION_FLAGS = ("add_cards", "remove_cards", "charge_cards", "view_reports", "administrator", "active")


def _user_cache_key(user_id: int) -> str:
    return f"user:{user_id}"


# =============================================================================
# PASSWORDS
# =============================================================================

def validate_passwords(pass1: str, pass2: str) -> None:
    """Raises PasswordsDoNotMatch, PasswordTooShort or PasswordTooLong."""
    if pass1 != pass2:
        raise PasswordsDoNotMatch()
    if len(pass1) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort(
            f"The password you provided is too short. It must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    if len(pass1.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong()


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. A malformed stored hash never verifies."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =============================================================================
# LOOKUPS
# =============================================================================

def admin_exists() -> bool:
    return db.session.query(User.id).filter_by(username=ADMIN_USERNAME).first() is not None


def find(user_id: int) -> User:
    """Load a user row straight from the database."""
    try:
        user = db.session.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.error("User lookup failed for id %s: %s", user_id, exc)
        raise StoreError("Could not look up user's data.")
    if user is None:
        raise UserNotFound("This user does not exist.")
    return user


def find_by_username(username: str) -> User:
    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        raise UserNotFound()
    return user


def get_user_data(user_id: int) -> dict:
    """Public user dict, served from cache when warm."""
    key = _user_cache_key(user_id)
    cached = cache.get(key)
    if cached is not None:
        return cached

    data = find(user_id).to_dict()
    cache.set(key, data)
    return data


def list_users() -> list[dict]:
    """Projection of id + username, ordered by username."""
    rows = db.session.query(User.id, User.username).order_by(User.username.asc()).all()
    return [{"id": row.id, "username": row.username} for row in rows]


# =============================================================================
# MUTATIONS
# =============================================================================

def create_admin(pass1: str, pass2: str) -> User:
    """
    Bootstrap the super-admin with every permission and install default
    company and app settings. Refuses once the admin exists.
    """
    if admin_exists():
        raise AdminAlreadyExists()

    validate_passwords(pass1, pass2)

    user = User(
        username=ADMIN_USERNAME,
        password_hash=hash_password(pass1),
        add_cards=True,
        remove_cards=True,
        charge_cards=True,
        view_reports=True,
        administrator=True,
        active=True,
    )
    db.session.add(user)
    settings_service.ensure_defaults()

    try:
        db.session.commit()
    except IntegrityError:
        # another request created the admin first
        db.session.rollback()
        raise AdminAlreadyExists()

    logger.info("Super-admin created")
    return user


def add_user(username: str, pass1: str, pass2: str, **flags) -> User:
    if not username:
        raise MissingField("username", "You did not provide a username.")

    if db.session.query(User.id).filter_by(username=username).first() is not None:
        raise DuplicateUsername()

    validate_passwords(pass1, pass2)

    user = User(
        username=username,
        password_hash=hash_password(pass1),
        **{flag: bool(flags.get(flag, False)) for flag in PERMISSION_FLAGS},
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateUsername()
    return user


def change_password(user_id: int, pass1: str, pass2: str) -> None:
    validate_passwords(pass1, pass2)

    user = find(user_id)
    user.password_hash = hash_password(pass1)
    db.session.commit()

    cache.delete(_user_cache_key(user_id))


def update_permissions(caller_id: int, user_id: int, **flags) -> User:
    """
    Set every permission flag on a user.

    The caller cannot edit themselves and nobody can edit the super-admin,
    whose flags stay all-true.
    """
    if caller_id == user_id:
        raise CannotUpdateSelf()

    user = find(user_id)
    if user.is_super_admin:
        raise CannotUpdateSuperAdmin()

    for flag in PERMISSION_FLAGS:
        setattr(user, flag, bool(flags.get(flag, False)))
    db.session.commit()

    cache.delete(_user_cache_key(user_id))
    return user


def authenticate(username: str, password: str) -> User:
    """
    Resolve login credentials.

    Raises UserNotFound, UserInactive or InvalidCredentials so the login page
    can tell the user which one applies.
    """
    user = find_by_username(username)
    if not user.active:
        raise UserInactive()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user
