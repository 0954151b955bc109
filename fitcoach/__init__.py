import logging
import os
from logging.handlers import RotatingFileHandler

import click
from flask import Flask, jsonify
from flask_apscheduler import APScheduler
from flask_cors import CORS

from fitcoach.config import config
from fitcoach.errors import register_error_handlers
from fitcoach.extensions import db, ma, jwt, migrate, socketio, limiter

scheduler = APScheduler()

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)

    log_file = app.config.get("LOG_FILE")
    if log_file and not app.testing:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(level)
        logging.getLogger().addHandler(handler)


def configure_jwt():
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"success": False, "error": "TOKEN_EXPIRED", "msg": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"success": False, "error": "INVALID_TOKEN", "msg": "Invalid token"}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(error):
        return jsonify({"success": False, "error": "UNAUTHORIZED", "msg": "Access token required"}), 401


def configure_scheduler(app):
    """Start the subscription expiry sweep once per process."""
    if not app.config.get("SCHEDULER_ENABLED") or scheduler.running:
        return

    scheduler.init_app(app)

    @scheduler.task("interval", id="expire_subscriptions", minutes=app.config["SUBSCRIPTION_SWEEP_MINUTES"])
    def expire_subscriptions_job():
        from fitcoach.services.subscriptions import expire_subscriptions

        with scheduler.app.app_context():
            try:
                expire_subscriptions(db.session)
            except Exception as e:
                db.session.rollback()
                logging.error(f"Subscription expiry sweep failed: {e}")

    scheduler.start()


def register_commands(app):
    @app.cli.command("seed")
    def seed_command():
        """Load the exercise library and food database."""
        from fitcoach.seed import seed_database

        added = seed_database(db.session)
        click.echo(f"Seeded {added} rows")


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(config[config_name or os.getenv("FLASK_CONFIG", "default")])

    configure_logging(app)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(app, resources={r"/api/*": {
        "origins": app.config["CORS_ORIGINS"],
        "allow_headers": ["Content-Type", "Authorization"],
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    }})
    socketio.init_app(app, async_mode=app.config["SOCKETIO_ASYNC_MODE"])

    configure_jwt()
    register_error_handlers(app)

    from fitcoach.routes import register_blueprints
    from fitcoach import sockets  # noqa: F401  registers socket handlers

    register_blueprints(app)
    register_commands(app)

    @app.route("/api/health")
    def health():
        return jsonify({"status": "OK"}), 200

    configure_scheduler(app)
    logging.info(f"FitCoach app created ({config_name or os.getenv('FLASK_CONFIG', 'default')})")
    return app
