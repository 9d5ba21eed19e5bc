import logging

import click
from flask import Flask

from .config import Config


def configure_logging(app):
    log = logging.getLogger("storefront")
    log.setLevel(app.config["LOG_LEVEL"])
    if log.handlers:
        return log
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    log.addHandler(ch)
    if app.config.get("LOG_FILE"):
        fh = logging.FileHandler(app.config["LOG_FILE"])
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        log.addHandler(fh)
    return log


def register_commands(app):
    from .database import get_db
    from .seed import seed_catalog

    @app.cli.command("init-db")
    @click.option("--drop", is_flag=True, help="Drop all tables first.")
    def init_db(drop):
        store = get_db()
        if drop:
            store.drop_all()
        store.create_all()
        click.echo("Database tables ready.")

    @app.cli.command("seed")
    def seed():
        with get_db().session() as db:
            n = seed_catalog(db)
        click.echo(f"Seeded products: {n}")


def create_app(test_config=None):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
    configure_logging(app)

    from . import auth, cart, catalog, checkout, database, orders, returns, webhooks, wishlist
    from .errors import register_error_handlers
    from .helpers import format_money

    database.init_app(app)
    auth.login_manager.init_app(app)
    for module in (catalog, auth, cart, wishlist, checkout, webhooks, orders, returns):
        app.register_blueprint(module.bp)
    register_error_handlers(app)
    register_commands(app)

    @app.context_processor
    def inject_globals():
        return {"SITE_NAME": app.config["SITE_NAME"], "format_money": format_money}

    return app
