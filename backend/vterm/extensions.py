# Overview: Flask extension instances for database, migrations, cache and payment gateway.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.cache_service import Cache
from .services.gateway import StripeGateway

db = SQLAlchemy()
migrate = Migrate()
cache = Cache()
gateway = StripeGateway()
