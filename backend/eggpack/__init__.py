# backend/eggpack/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.purchases import purchases_bp
    from .routes.production import production_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.banking import banking_bp
    from .routes.petty_cash import petty_cash_bp
    from .routes.credit import credit_bp
    from .routes.finance import finance_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(production_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(banking_bp)
    app.register_blueprint(petty_cash_bp)
    app.register_blueprint(credit_bp)
    app.register_blueprint(finance_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
