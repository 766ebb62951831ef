import logging
import os
from datetime import timedelta

from flask import Flask
from dotenv import load_dotenv

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)
from logging_conf import configure_logging  # noqa: E402

logger = logging.getLogger(__name__)


def create_app(overrides=None) -> Flask:
    """Application factory for the repair shop tracker."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    # blueprints
    from modules.shop import bp as shop_bp
    from modules.notifications import bp as notifications_bp
    from modules.personnel import bp as personnel_bp
    from modules.analytics import bp as analytics_bp

    app.register_blueprint(shop_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(personnel_bp)
    app.register_blueprint(analytics_bp)

    from ui_routes import ui
    app.register_blueprint(ui)  # role dashboard "/"

    # uploads dir
    os.makedirs(app.config.get("UPLOAD_FOLDER", "uploads"), exist_ok=True)

    from models import User
    from modules.notifications.sweeper import NotificationSweeper
    from modules.shop.registry import PartRegistry

    # DB
    with app.app_context():
        # models must be imported before create_all()
        from modules.shop import models as shop_models  # noqa: F401
        from modules.notifications import models as notification_models  # noqa: F401

        db.create_all()

        registry = PartRegistry(
            db.session,
            daily_capacity=app.config["DAILY_CAPACITY_HOURS"],
            qr_base_url=app.config["QR_BASE_URL"],
        )
        sweeper = NotificationSweeper(
            registry,
            interval=timedelta(minutes=app.config["NOTIFICATION_INTERVAL_MINUTES"]),
            cooldown=timedelta(minutes=app.config["NOTIFICATION_COOLDOWN_MINUTES"]),
        )
        app.extensions["part_registry"] = registry
        app.extensions["notification_sweeper"] = sweeper

        if app.config["SEED_MOCK_DATA"] and db.session.query(User).count() == 0:
            import seed_shop

            counts = seed_shop.run(registry)
            logger.info("Seeded mock shop: %s", counts)
            sweeper.maybe_run()

    @app.before_request
    def sweep_notifications():
        sweeper.maybe_run()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
