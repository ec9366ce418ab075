import logging

import click
from flask import Flask, jsonify
from config import Config
from routes import health_bp, booking_bp, queue_bp

from models import db
from flask_migrate import Migrate
from logging_config import setup_logging
from scheduling import SchedulingService, SchedulingError
from utils.auth_context import load_current_actor
from utils.seed import seed_demo

logger = logging.getLogger(__name__)


def create_app(test_config=None, clock=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    setup_logging(app.config.get("LOG_LEVEL", "INFO"), detailed=app.config.get("DEBUG", False))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(queue_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    app.extensions["scheduling"] = SchedulingService(
        clock=clock,
        max_retries=app.config.get("ALLOCATION_MAX_RETRIES", 3),
        default_grace_minutes=app.config.get("DEFAULT_NO_SHOW_GRACE_MINUTES", 15),
    )

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(exc):
        if exc.status_code >= 500:
            logger.error("Scheduling failure: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        # JSON API only
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (development; use `flask db upgrade` elsewhere)."""
        db.create_all()
        click.echo("Database tables created")

    @app.cli.command("seed-demo")
    def seed_demo_command():
        """Create a demo business with a live and a slotted department."""
        business = seed_demo()
        for unit in business.capacity_units:
            click.echo(f"{business.name} (#{business.id}) / {unit.department_id}: unit #{unit.id}, {unit.mode.value}")


if __name__ == "__main__":
    app = create_app()
    # Run locally; threaded so concurrent bookings really race
    app.run(host="127.0.0.1", port=5002, threaded=True)
