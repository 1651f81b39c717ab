# backend/vterm/__init__.py
from datetime import timedelta

from flask import Flask

from .config import Config, validate_config
from .extensions import cache, db, gateway, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=int(app.config["SESSION_LIFETIME_DAYS"]))

    # Bad keys would only surface on the first login or charge; fail at startup instead
    if not app.config.get("TESTING"):
        validate_config(app.config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)
    gateway.init_app(app)

    from .services.session_service import EncryptedCookieSessionInterface
    app.session_interface = EncryptedCookieSessionInterface()

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.pages import pages_bp
    from .routes.users import users_bp
    from .routes.cards import cards_bp
    from .routes.receipt import receipt_bp
    from .routes.settings import settings_bp
    from .routes.cron import cron_bp

    app.register_blueprint(pages_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(cards_bp)
    app.register_blueprint(receipt_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(cron_bp)

    @app.errorhandler(404)
    def not_found(_error):
        from .decorators import notification_page
        return notification_page("Page Not Found", "This page does not exist. Please try logging in.", status=404)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
