"""Initial schema: users, cards, company info, app settings, card counts

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("add_cards", sa.Boolean(), nullable=False),
        sa.Column("remove_cards", sa.Boolean(), nullable=False),
        sa.Column("charge_cards", sa.Boolean(), nullable=False),
        sa.Column("view_reports", sa.Boolean(), nullable=False),
        sa.Column("administrator", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created", sa.String(length=32), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(length=255), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("cardholder", sa.String(length=255), nullable=False),
        sa.Column("card_expiration", sa.String(length=7), nullable=False),
        sa.Column("card_last4", sa.String(length=4), nullable=False),
        sa.Column("processor_token", sa.String(length=255), nullable=False),
        sa.Column("added_by_user", sa.String(length=255), nullable=False),
        sa.Column("created", sa.String(length=32), nullable=False),
        sa.Column("last_used_timestamp", sa.Integer(), nullable=False),
        sa.UniqueConstraint("customer_id", name="uq_cards_customer_id"),
        sa.UniqueConstraint("processor_token"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_cards_customer_name", "cards", ["customer_name"])
    op.create_index("ix_cards_card_expiration", "cards", ["card_expiration"])

    op.create_table(
        "company_info",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=False),
        sa.Column("suite", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=64), nullable=False),
        sa.Column("postal_code", sa.String(length=32), nullable=False),
        sa.Column("country", sa.String(length=64), nullable=False),
        sa.Column("phone_num", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("percent_fee", sa.Float(), nullable=False),
        sa.Column("fixed_fee", sa.Float(), nullable=False),
        sa.Column("statement_descriptor", sa.String(length=22), nullable=False),
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("require_customer_id", sa.Boolean(), nullable=False),
        sa.Column("customer_id_format", sa.String(length=255), nullable=False),
        sa.Column("api_key", sa.String(length=64), nullable=False),
        sa.Column("report_timezone", sa.String(length=64), nullable=False),
    )

    op.create_table(
        "card_counts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("visa", sa.Integer(), nullable=False),
        sa.Column("american_express", sa.Integer(), nullable=False),
        sa.Column("master_card", sa.Integer(), nullable=False),
        sa.Column("discover", sa.Integer(), nullable=False),
        sa.Column("jcb", sa.Integer(), nullable=False),
        sa.Column("diners_club", sa.Integer(), nullable=False),
        sa.Column("unknown", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
    )


def downgrade():
    op.drop_table("card_counts")
    op.drop_table("app_settings")
    op.drop_table("company_info")
    op.drop_index("ix_cards_card_expiration", table_name="cards")
    op.drop_index("ix_cards_customer_name", table_name="cards")
    op.drop_table("cards")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
