"""
Expired card sweep tests.

Verifies:
- Both padded and unpadded expirations are matched
- Only cards for the requested month are removed
- The cron route is gated by the scheduler header or shared secret
- The CLI command runs the same sweep
"""

import pytest

from vterm.errors import MissingField
from vterm.extensions import db
from vterm.models import Card
from vterm.services import cron_service

from conftest import make_card


class TestExpirationVariants:

    def test_unpadded(self):
        assert cron_service.expiration_variants("3/2024") == ["3/2024", "03/2024"]

    def test_padded(self):
        assert cron_service.expiration_variants("11/2024") == ["11/2024", "11/2024"]

    @pytest.mark.parametrize("value", ["2024-03", "3/24", "", "march"])
    def test_rejects(self, value):
        with pytest.raises(MissingField):
            cron_service.expiration_variants(value)


class TestRemoveExpired:

    def test_removes_matching_month_only(self, gateway):
        make_card(card_expiration="03/2024", processor_token="cus_old1")
        make_card(card_expiration="3/2024", processor_token="cus_old2")
        make_card(card_expiration="04/2024", processor_token="cus_keep")

        assert cron_service.remove_expired_cards("3/2024") == 2

        remaining = [c.processor_token for c in db.session.query(Card).all()]
        assert remaining == ["cus_keep"]
        assert sorted(k["customer_token"] for k in gateway.called("delete_customer")) == ["cus_old1", "cus_old2"]

    def test_nothing_to_remove(self):
        assert cron_service.remove_expired_cards("1/1999") == 0


class TestCronRoute:

    def test_requires_header(self, client):
        resp = client.post("/cron/remove-expired-cards/")
        assert resp.status_code == 400
        assert resp.get_json()["data"]["error_type"] == "notAuthorized"

    def test_wrong_secret(self, client):
        resp = client.get("/cron/remove-expired-cards/", headers={"X-Cron-Secret": "guess"})
        assert resp.status_code == 400

    def test_appengine_header(self, client):
        make_card(card_expiration="05/2020")
        resp = client.get(
            "/cron/remove-expired-cards/?monthYear=5/2020",
            headers={"X-Appengine-Cron": "true"},
        )
        body = resp.get_json()
        assert body["type"] == "expiredCardsRemoved"
        assert body["data"] == {"removed": 1}

    def test_shared_secret(self, client):
        resp = client.post(
            "/cron/remove-expired-cards/",
            data={"monthYear": "5/2020"},
            headers={"X-Cron-Secret": "cron-secret"},
        )
        assert resp.get_json()["data"] == {"removed": 0}

    def test_bad_month(self, client):
        resp = client.get(
            "/cron/remove-expired-cards/?monthYear=bad",
            headers={"X-Appengine-Cron": "true"},
        )
        assert resp.get_json()["data"]["error_type"] == "missingInput"


class TestCLI:

    def test_remove_expired_command(self, app):
        make_card(card_expiration="07/2021")
        result = app.test_cli_runner().invoke(args=["cards", "remove-expired", "--month-year", "7/2021"])
        assert result.exit_code == 0, result.output
        assert "Removed 1 expired card(s)" in result.output
        assert db.session.query(Card).count() == 0

    def test_remove_expired_bad_input(self, app):
        result = app.test_cli_runner().invoke(args=["cards", "remove-expired", "--month-year", "July"])
        assert result.exit_code != 0

    def test_card_counts_command(self, app):
        result = app.test_cli_runner().invoke(args=["system", "card-counts"])
        assert result.exit_code == 0
        assert "total" in result.output
