"""
Receipt tests.

Verifies:
- A charge is read from the cache before asking Stripe
- Unknown charges and missing company info render a notification page
- Timestamps are shown in the configured report timezone
- The preview works before company info exists
"""

import pytest

from vterm.errors import ChargeNotFound
from vterm.extensions import cache, db
from vterm.models import AppSettings
from vterm.services import receipt_service

from conftest import make_charge, set_company


# 2025-01-02T08:16:32Z
CREATED = 1735805792


class TestLoadCharge:

    def test_cache_first(self, gateway):
        cache.set("ch_cached", make_charge(id="ch_cached"))
        assert receipt_service.load_charge("ch_cached")["id"] == "ch_cached"
        assert gateway.called("retrieve_charge") == []

    def test_falls_back_to_stripe_and_caches(self, gateway):
        gateway.retrievable["ch_remote"] = make_charge(id="ch_remote")
        assert receipt_service.load_charge("ch_remote")["id"] == "ch_remote"
        assert cache.get("ch_remote")["id"] == "ch_remote"

        receipt_service.load_charge("ch_remote")
        assert len(gateway.called("retrieve_charge")) == 1

    def test_unknown_charge(self, gateway):
        with pytest.raises(ChargeNotFound):
            receipt_service.load_charge("ch_missing")


class TestBuildReceipt:

    def test_receipt_fields(self, gateway):
        set_company(company_name="Acme Supply", state="NY", statement_descriptor="ACME SUPPLY")
        db.session.add(AppSettings(id=1, report_timezone="America/New_York"))
        db.session.commit()
        cache.set("ch_1", make_charge(
            id="ch_1", amount=25604, created=CREATED, metadata={"customer_name": "ACME Dynamite", "invoice_num": "344402"},
        ))

        receipt = receipt_service.build_receipt("ch_1")
        assert receipt["company_name"] == "Acme Supply"
        assert receipt["customer"] == "ACME Dynamite"
        assert receipt["amount"] == "256.04"
        assert receipt["invoice"] == "344402"
        assert receipt["captured"] == "true"
        assert receipt["timestamp"] == "2025-01-02 @ 03:16:32AM"

    def test_bad_timezone_falls_back_to_utc(self):
        assert receipt_service.display_time("2025-01-02T08:16:32.000Z", "Not/AZone") == "2025-01-02 @ 08:16:32AM"

    def test_uncaptured_has_no_timestamp(self):
        set_company()
        cache.set("ch_pending", make_charge(id="ch_pending", captured=False))
        receipt = receipt_service.build_receipt("ch_pending")
        assert receipt["captured"] == "false"
        assert receipt["timestamp"] == "*not captured yet*"


class TestReceiptRoutes:

    def test_renders_receipt(self, admin_client):
        set_company(statement_descriptor="ACME SUPPLY")
        cache.set("ch_ok", make_charge(id="ch_ok", amount=1000))
        resp = admin_client.get("/card/receipt/?chg_id=ch_ok")
        assert resp.status_code == 200
        assert b"$10.00" in resp.data
        assert b"ACME SUPPLY" in resp.data

    def test_company_missing(self, admin_client):
        # create-admin installs an empty company row
        cache.set("ch_ok", make_charge(id="ch_ok"))
        resp = admin_client.get("/card/receipt/?chg_id=ch_ok")
        assert b"Cannot Show Receipt" in resp.data
        assert b"Company info has not been set yet" in resp.data

    def test_unknown_charge(self, admin_client):
        set_company()
        resp = admin_client.get("/card/receipt/?chg_id=ch_nope")
        assert b"This charge could not be found." in resp.data

    def test_preview_without_company(self, admin_client):
        resp = admin_client.get("/company/receipt-preview/")
        assert resp.status_code == 200
        assert b"Company info has not been set yet" in resp.data
        assert b"Wile E. Coyote" in resp.data
