# Overview: Service-layer operations for the company profile and app settings singletons.

from __future__ import annotations

import hashlib
import logging
import secrets

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError
from ..extensions import db
from ..models import AppSettings, CompanySettings
from ..models.settings import SINGLETON_ID, STATEMENT_DESCRIPTOR_MAX

logger = logging.getLogger(__name__)

API_KEY_LENGTH = 20


def ensure_defaults() -> None:
    """Add default singleton rows if missing. Caller commits."""
    if db.session.get(CompanySettings, SINGLETON_ID) is None:
        db.session.add(CompanySettings(id=SINGLETON_ID))
    if db.session.get(AppSettings, SINGLETON_ID) is None:
        db.session.add(AppSettings(id=SINGLETON_ID))


def get_company() -> CompanySettings:
    """
    The company profile. When the row was never saved an unsaved instance
    holding the defaults is returned.
    """
    try:
        company = db.session.get(CompanySettings, SINGLETON_ID)
    except SQLAlchemyError as exc:
        logger.error("Could not load company info: %s", exc)
        raise StoreError("Could not get company info.")
    if company is None:
        company = CompanySettings(id=SINGLETON_ID)
        _apply_column_defaults(company)
    return company


def get_app_settings() -> AppSettings:
    try:
        settings = db.session.get(AppSettings, SINGLETON_ID)
    except SQLAlchemyError as exc:
        logger.error("Could not load app settings: %s", exc)
        raise StoreError("Could not get app settings.")
    if settings is None:
        settings = AppSettings(id=SINGLETON_ID)
        _apply_column_defaults(settings)
    return settings


def _apply_column_defaults(obj) -> None:
    # Column defaults only fire on INSERT; fill them in for transient rows
    for column in obj.__table__.columns:
        if getattr(obj, column.key) is None and column.default is not None and column.default.is_scalar:
            setattr(obj, column.key, column.default.arg)


def _get_or_create(model):
    row = db.session.get(model, SINGLETON_ID)
    if row is None:
        row = model(id=SINGLETON_ID)
        db.session.add(row)
    return row


def _normalize_percent_fee(value: float) -> float:
    # Admins type either 2.9 (percent) or 0.029 (fraction)
    if value >= 1:
        return round(value / 100, 6)
    return value


def save_company(
    *,
    company_name: str,
    street: str,
    suite: str,
    city: str,
    state: str,
    postal_code: str,
    country: str,
    phone_num: str,
    email: str,
    percent_fee: float,
    fixed_fee: float,
    statement_descriptor: str,
) -> CompanySettings:
    company = _get_or_create(CompanySettings)

    company.company_name = company_name
    company.street = street
    company.suite = suite
    company.city = city
    company.state = state.upper()
    company.postal_code = postal_code
    company.country = country.upper()
    company.phone_num = phone_num
    company.email = email
    company.percent_fee = _normalize_percent_fee(percent_fee)
    company.fixed_fee = fixed_fee
    company.statement_descriptor = statement_descriptor[:STATEMENT_DESCRIPTOR_MAX]

    db.session.commit()
    return company


def save_app_settings(*, require_customer_id: bool, customer_id_format: str, report_timezone: str | None = None) -> AppSettings:
    settings = _get_or_create(AppSettings)
    settings.require_customer_id = require_customer_id
    settings.customer_id_format = customer_id_format
    if report_timezone:
        settings.report_timezone = report_timezone
    db.session.commit()
    return settings


def new_api_key() -> str:
    """20 upper-case hex chars taken from the sha256 of a random seed."""
    seed = secrets.token_bytes(32)
    return hashlib.sha256(seed).hexdigest()[:API_KEY_LENGTH].upper()


def generate_api_key() -> str:
    """Rotate the api key; the previous key stops working immediately."""
    settings = _get_or_create(AppSettings)
    settings.api_key = new_api_key()
    db.session.commit()
    logger.info("API key rotated")
    return settings.api_key
