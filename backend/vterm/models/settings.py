from __future__ import annotations

from ..extensions import db

# Singleton rows live at this primary key.
SINGLETON_ID = 1

DEFAULT_PERCENT_FEE = 0.029
DEFAULT_FIXED_FEE = 0.30

# Card networks truncate statement descriptors past this length.
STATEMENT_DESCRIPTOR_MAX = 22


class CompanySettings(db.Model):
    """
    Company profile shown on receipts plus the Stripe fee schedule used to
    estimate net totals in reports.
    """
    __tablename__ = "company_info"

    id = db.Column(db.Integer, primary_key=True, default=SINGLETON_ID)

    company_name = db.Column(db.String(255), nullable=False, default="")
    street = db.Column(db.String(255), nullable=False, default="")
    suite = db.Column(db.String(255), nullable=False, default="")
    city = db.Column(db.String(255), nullable=False, default="")
    state = db.Column(db.String(64), nullable=False, default="")
    postal_code = db.Column(db.String(32), nullable=False, default="")
    country = db.Column(db.String(64), nullable=False, default="")
    phone_num = db.Column(db.String(64), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")

    # percent_fee is a decimal fraction (0.029 == 2.9%); fixed_fee is dollars
    percent_fee = db.Column(db.Float, nullable=False, default=DEFAULT_PERCENT_FEE)
    fixed_fee = db.Column(db.Float, nullable=False, default=DEFAULT_FIXED_FEE)

    statement_descriptor = db.Column(db.String(STATEMENT_DESCRIPTOR_MAX), nullable=False, default="")

    def to_dict(self) -> dict:
        return {
            "company_name": self.company_name,
            "street": self.street,
            "suite": self.suite,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone_num": self.phone_num,
            "email": self.email,
            "percent_fee": self.percent_fee,
            "fixed_fee": self.fixed_fee,
            "statement_descriptor": self.statement_descriptor,
        }


class AppSettings(db.Model):
    __tablename__ = "app_settings"

    id = db.Column(db.Integer, primary_key=True, default=SINGLETON_ID)

    require_customer_id = db.Column(db.Boolean, nullable=False, default=False)
    # Free-form hint shown next to the customer id input
    customer_id_format = db.Column(db.String(255), nullable=False, default="")

    # 20 upper-hex chars; empty disables auto-charge
    api_key = db.Column(db.String(64), nullable=False, default="")

    # IANA zone used when displaying receipt timestamps
    report_timezone = db.Column(db.String(64), nullable=False, default="UTC")

    def to_dict(self) -> dict:
        return {
            "require_customer_id": self.require_customer_id,
            "customer_id_format": self.customer_id_format,
            "api_key": self.api_key,
            "report_timezone": self.report_timezone,
        }
