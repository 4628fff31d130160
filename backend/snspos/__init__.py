# backend/snspos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.item_groups import item_groups_bp, item_group_search_bp
    from .routes.items import items_bp
    from .routes.stock_entries import stock_entries_bp
    from .routes.stock_transactions import stock_transactions_bp
    from .routes.pos import pos_bp
    from .routes.pos_transactions import pos_transactions_bp
    from .routes.printers import printers_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(item_groups_bp)
    app.register_blueprint(item_group_search_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(stock_entries_bp)
    app.register_blueprint(stock_transactions_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(pos_transactions_bp)
    app.register_blueprint(printers_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
