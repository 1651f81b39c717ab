"""
Company info and app settings tests.

Verifies:
- Defaults are served before anything is saved
- Saved company info is normalized (upper-case codes, descriptor length,
  percent fee as a fraction)
- API keys are 20 upper-case hex characters and rotate
- Settings endpoints are admin-only
"""

import re

from vterm.models import AppSettings, CompanySettings
from vterm.extensions import db
from vterm.services import settings_service

from conftest import USER_PASSWORD, bootstrap_admin, create_user, envelope_error, login


def company_form(**overrides):
    data = {
        "name": "Acme Supply",
        "street": "1 Main St",
        "suite": "2",
        "city": "Albany",
        "state": "ny",
        "postal": "12207",
        "country": "us",
        "phone": "555-0100",
        "email": "billing@example.com",
        "percentFee": "2.9",
        "fixedFee": "0.30",
        "descriptor": "ACME SUPPLY COMPANY OF ALBANY",
    }
    data.update(overrides)
    return data


class TestDefaults:

    def test_defaults_without_rows(self):
        company = settings_service.get_company()
        assert company.company_name == ""
        assert company.percent_fee == 0.029
        assert company.fixed_fee == 0.30

        app_settings = settings_service.get_app_settings()
        assert app_settings.require_customer_id is False
        assert app_settings.report_timezone == "UTC"
        assert app_settings.api_key == ""

        # nothing was written
        assert db.session.query(CompanySettings).count() == 0
        assert db.session.query(AppSettings).count() == 0


class TestCompany:

    def test_save_normalizes(self, admin_client):
        resp = admin_client.post("/company/set/", data=company_form())
        body = resp.get_json()
        assert body["type"] == "dataSaved"

        data = body["data"]
        assert data["state"] == "NY"
        assert data["country"] == "US"
        assert data["statement_descriptor"] == "ACME SUPPLY COMPANY OF"
        assert len(data["statement_descriptor"]) == 22
        assert data["percent_fee"] == 0.029
        assert data["fixed_fee"] == 0.30

    def test_fraction_fee_kept(self):
        company = settings_service.save_company(
            company_name="A", street="", suite="", city="", state="", postal_code="",
            country="", phone_num="", email="", percent_fee=0.025, fixed_fee=0.25,
            statement_descriptor="A",
        )
        assert company.percent_fee == 0.025

    def test_get_company(self, admin_client):
        admin_client.post("/company/set/", data=company_form())
        resp = admin_client.get("/company/get/")
        assert resp.get_json()["type"] == "dataFound"
        assert resp.get_json()["data"]["company_name"] == "Acme Supply"

    def test_non_admin_cannot_save(self, client):
        bootstrap_admin(client)
        create_user("clerk", charge_cards=True)
        client.get("/logout/")
        login(client, "clerk", USER_PASSWORD)

        assert envelope_error(client.post("/company/set/", data=company_form())) == "notAuthorized"
        # any logged-in user can read
        assert client.get("/company/get/").status_code == 200


class TestAppSettings:

    def test_save(self, admin_client):
        resp = admin_client.post("/app-settings/set/", data={
            "requireCustID": "true",
            "custIDFormat": "CRM-####",
            "reportTimezone": "America/Chicago",
        })
        data = resp.get_json()["data"]
        assert data["require_customer_id"] is True
        assert data["customer_id_format"] == "CRM-####"
        assert data["report_timezone"] == "America/Chicago"

    def test_blank_timezone_keeps_previous(self):
        settings_service.save_app_settings(require_customer_id=False, customer_id_format="", report_timezone="Europe/Paris")
        settings = settings_service.save_app_settings(require_customer_id=False, customer_id_format="", report_timezone="")
        assert settings.report_timezone == "Europe/Paris"

    def test_generate_api_key(self, admin_client):
        resp = admin_client.get("/app-settings/generate-api-key/")
        body = resp.get_json()
        assert body["type"] == "generateAPIKey"
        assert re.fullmatch(r"[0-9A-F]{20}", body["data"])
        assert settings_service.get_app_settings().api_key == body["data"]

    def test_rotation_replaces_key(self):
        first = settings_service.generate_api_key()
        second = settings_service.generate_api_key()
        assert first != second
        assert settings_service.get_app_settings().api_key == second
