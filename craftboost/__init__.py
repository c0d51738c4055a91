import os
from flask import Flask
from dotenv import load_dotenv

load_dotenv()


def create_app(config_name=None):
    flask_app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV")
        if not config_name:
            # Default to production on managed platforms to avoid accidental
            # debug mode/weak defaults when env selection is omitted.
            if os.environ.get("RAILWAY_ENVIRONMENT") or os.environ.get("PORT"):
                config_name = "production"
            else:
                config_name = "development"

    from craftboost.config import config_map

    config_cls = config_map.get(config_name, config_map["development"])
    flask_app.config.from_object(config_cls)

    if hasattr(config_cls, "init_app"):
        config_cls.init_app(flask_app)

    # Initialize extensions
    from craftboost.extensions import db, migrate, init_redis
    from craftboost.services.post_store import PostStore

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    init_redis(flask_app)
    flask_app.extensions["post_store"] = PostStore(db)

    # Import models so Alembic sees them
    from craftboost.models import Post  # noqa: F401

    # Register blueprints
    from craftboost.blueprints.api import api_bp

    flask_app.register_blueprint(api_bp, url_prefix="/api")

    from craftboost.health import health_bp

    flask_app.register_blueprint(health_bp)

    from craftboost.errors import CraftBoostError

    @flask_app.errorhandler(CraftBoostError)
    def handle_craftboost_error(e):
        return e.to_dict(), e.status_code

    # Register CLI commands
    from craftboost.cli import register_cli

    register_cli(flask_app)

    return flask_app
