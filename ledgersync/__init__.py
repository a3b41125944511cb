import logging

from flask import Flask, redirect, url_for
from .extensions import login_manager, oauth
from .config import Config
from .utils import format_currency

from .blueprints.auth.routes import auth_bp
from .blueprints.ledger.routes import ledger_bp


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Initialize extensions
    login_manager.init_app(app)
    oauth.init_app(app)
    # client id/secret come from GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET
    oauth.register(
        name="google",
        server_metadata_url=app.config["GOOGLE_METADATA_URL"],
        client_kwargs={"scope": f"openid email profile {app.config['SHEETS_SCOPE']}"},
    )

    if not app.config.get("SPREADSHEET_ID"):
        app.logger.warning("SPREADSHEET_ID is not set; ledger requests will fail")

    @app.template_filter("currency")
    def currency_filter(amount):
        return format_currency(amount or 0, app.config.get("CURRENCY_SYMBOL", "$"))

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(ledger_bp)

    @app.route("/")
    def root():
        return redirect(url_for("ledger.index"))

    return app
