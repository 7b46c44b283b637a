# backend/bookledger/__init__.py
import logging

from flask import Flask, jsonify

from .config import Config
from .errors import FetchFailure, InvariantViolation, NotFound
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"])
    logging.getLogger("bookledger").setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.accounts import accounts_bp
    from .routes.items import items_bp
    from .routes.customers import customers_bp
    from .routes.sales import sales_bp
    from .routes.payments import payments_bp
    from .routes.returns import returns_bp
    from .routes.cashbook import cashbook_bp
    from .routes.transfers import transfers_bp
    from .routes.purchases import purchases_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(returns_bp)
    app.register_blueprint(cashbook_bp)
    app.register_blueprint(transfers_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(reports_bp)

    # Fallbacks for errors a route did not map itself
    @app.errorhandler(NotFound)
    def handle_not_found(exc):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(InvariantViolation)
    def handle_invariant_violation(exc):
        return jsonify({"error": str(exc), "details": exc.details}), 400

    @app.errorhandler(FetchFailure)
    def handle_fetch_failure(exc):
        app.logger.error("Ledger store unavailable: %s", exc)
        return jsonify({"error": str(exc), "details": exc.details}), 503

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
