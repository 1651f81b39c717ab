"""
Pytest fixtures for the card terminal backend tests.

Provides the app on an in-memory database, a fake Stripe gateway that
records every call, and helpers to bootstrap the admin and log users in.
"""

import itertools
import threading
import time

import pytest
import stripe

from vterm import create_app
from vterm.extensions import cache, db
from vterm.models import Card, CompanySettings
from vterm.models.settings import SINGLETON_ID
from vterm.services import auth_service


ADMIN_PASSWORD = "Passw0rd!X"
USER_PASSWORD = "user-password-1"

_token_seq = itertools.count(1)


class FakeGateway:
    """
    Stand-in for StripeGateway. Returns Stripe-shaped dicts and records
    calls as (method, kwargs) tuples.
    """

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()
        self._next_id = 1

        # knobs
        self.card_brand = "Visa"
        self.charge_delay = 0.0
        self.charge_error = None
        self.customer_error = None
        self.delete_error = None
        self.refund_error = None
        self.capture_error = None
        self.metadata_error = None

        # data served by list/retrieve
        self.charges = []
        self.refund_events = []
        self.retrievable = {}

    def _record(self, method, **kwargs):
        with self._lock:
            self.calls.append((method, kwargs))

    def _new_id(self, prefix):
        with self._lock:
            value = f"{prefix}_{self._next_id}"
            self._next_id += 1
        return value

    def called(self, method):
        return [kwargs for name, kwargs in self.calls if name == method]

    def create_customer(self, description, card_token):
        self._record("create_customer", description=description, card_token=card_token)
        if self.customer_error:
            raise self.customer_error
        return {"id": self._new_id("cus"), "object": "customer", "description": description}

    def delete_customer(self, customer_token):
        self._record("delete_customer", customer_token=customer_token)
        if self.delete_error:
            raise self.delete_error

    def create_charge(self, **kwargs):
        self._record("create_charge", **kwargs)
        if self.charge_delay:
            time.sleep(self.charge_delay)
        if self.charge_error:
            raise self.charge_error
        return make_charge(
            id=self._new_id("ch"),
            amount=kwargs["amount"],
            customer=kwargs["customer"],
            metadata=kwargs["metadata"],
            brand=self.card_brand,
            captured=kwargs.get("capture", True),
        )

    def update_charge_metadata(self, charge_id, metadata):
        self._record("update_charge_metadata", charge_id=charge_id, metadata=metadata)
        if self.metadata_error:
            raise self.metadata_error
        return {"id": charge_id, "metadata": metadata}

    def capture_charge(self, charge_id):
        self._record("capture_charge", charge_id=charge_id)
        if self.capture_error:
            raise self.capture_error
        charge = dict(self.retrievable.get(charge_id) or make_charge(id=charge_id, captured=False))
        charge["captured"] = True
        return charge

    def retrieve_charge(self, charge_id):
        self._record("retrieve_charge", charge_id=charge_id)
        if charge_id not in self.retrievable:
            raise stripe.InvalidRequestError(f"No such charge: '{charge_id}'", "id")
        return self.retrievable[charge_id]

    def list_charges(self, start, end, customer=None):
        self._record("list_charges", start=start, end=end, customer=customer)
        for chg in self.charges:
            if not start <= chg["created"] <= end:
                continue
            if customer and chg["customer"] != customer:
                continue
            yield chg

    def create_refund(self, **kwargs):
        self._record("create_refund", **kwargs)
        if self.refund_error:
            raise self.refund_error
        return {"id": self._new_id("re"), "amount": kwargs["amount"], "charge": kwargs["charge"]}

    def list_refund_events(self, start, end):
        self._record("list_refund_events", start=start, end=end)
        for event in self.refund_events:
            if start <= event["created"] <= end:
                yield event


def make_charge(id="ch_test", amount=1000, customer="cus_test", metadata=None, brand="Visa",
                captured=True, created=None, name="Jane Doe", last4="4242"):
    """Stripe charge dict as returned by the gateway."""
    return {
        "id": id,
        "object": "charge",
        "amount": amount,
        "captured": captured,
        "created": created if created is not None else int(time.time()),
        "customer": customer,
        "metadata": metadata or {},
        "source": {
            "object": "card",
            "brand": brand,
            "last4": last4,
            "exp_month": 4,
            "exp_year": 2030,
            "name": name,
        },
    }


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SESSION_AUTH_KEY': 'a' * 64,
        'SESSION_ENCRYPT_KEY': 'b' * 32,
        'REDIS_URL': '',
        'CHARGE_TIMEOUT_SECONDS': 0.5,
        'CRON_SECRET': 'cron-secret',
        'STRIPE_PUBLISHABLE_KEY': 'pk_test_' + 'x' * 24,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def clean_state(app, monkeypatch):
    """Empty tables and cache before each test; cheap bcrypt rounds."""
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)

    db.session.remove()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    cache.clear()

    yield

    db.session.rollback()
    db.session.remove()


@pytest.fixture(autouse=True)
def gateway(app):
    """Every test gets a fresh fake gateway; nothing reaches Stripe."""
    fake = FakeGateway()
    app.extensions["gateway"] = fake
    return fake


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_client(client):
    """Client logged in as the bootstrapped super-admin."""
    bootstrap_admin(client)
    return client


@pytest.fixture(scope='function')
def descriptor():
    """Company info with a statement descriptor so charges can run."""
    return set_company(statement_descriptor="ACME SUPPLY")


def bootstrap_admin(client):
    return client.post('/create-admin/', data={
        'password1': ADMIN_PASSWORD,
        'password2': ADMIN_PASSWORD,
    })


def login(client, username: str, password: str):
    return client.post('/login/', data={'username': username, 'password': password})


def create_user(username: str, password: str = USER_PASSWORD, **flags):
    flags.setdefault("active", True)
    return auth_service.add_user(username, password, password, **flags)


def set_company(**fields):
    company = db.session.get(CompanySettings, SINGLETON_ID)
    if company is None:
        company = CompanySettings(id=SINGLETON_ID)
        db.session.add(company)
    values = {"company_name": "Acme Supply", "percent_fee": 0.029, "fixed_fee": 0.30}
    values.update(fields)
    for key, value in values.items():
        setattr(company, key, value)
    db.session.commit()
    return company


def make_card(**fields) -> Card:
    values = {
        "customer_id": None,
        "customer_name": "Acme",
        "cardholder": "Jane Doe",
        "card_expiration": "04/2030",
        "card_last4": "4242",
        "processor_token": f"cus_saved_{next(_token_seq)}",
        "added_by_user": "administrator",
    }
    values.update(fields)
    card = Card(**values)
    db.session.add(card)
    db.session.commit()
    return card


def envelope_error(resp) -> str:
    """error_type from a 400 envelope."""
    assert resp.status_code == 400, resp.get_data(as_text=True)
    body = resp.get_json()
    assert body["ok"] is False
    assert body["type"] == "error"
    return body["data"]["error_type"]
