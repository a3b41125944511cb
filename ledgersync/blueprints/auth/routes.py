import logging

from authlib.integrations.base_client import OAuthError
from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user
from ...controller import controller_for_request
from ...errors import IdentityError
from ...extensions import oauth
from ...models import User
from ...services.identity import IdentitySession

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# Google reports an unregistered origin / redirect URI with these codes
UNAUTHORIZED_ORIGIN_ERRORS = ("redirect_uri_mismatch", "origin_mismatch", "invalid_request")


def _fail_login(message):
    controller = controller_for_request()
    controller.report_error(message)
    return redirect(url_for("auth.login"))


@auth_bp.route("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("ledger.index"))
    controller = controller_for_request()
    show_help = controller.state.error is not None and any(
        code in controller.state.error for code in UNAUTHORIZED_ORIGIN_ERRORS
    )
    return render_template(
        "auth/login.html",
        state=controller.state,
        redirect_uri=url_for("auth.callback", _external=True),
        show_help=show_help or request.args.get("help") == "1",
    )


@auth_bp.route("/google")
def google_login():
    controller_for_request().dismiss_error()
    redirect_uri = url_for("auth.callback", _external=True)
    return oauth.google.authorize_redirect(redirect_uri, prompt="consent")


@auth_bp.route("/callback")
def callback():
    if request.args.get("error"):
        error = request.args.get("error")
        description = request.args.get("error_description") or ""
        logger.warning("Consent flow returned %s", error)
        return _fail_login(f"Google Auth Error: {error} {description}".strip())

    try:
        token = oauth.google.authorize_access_token()
    except OAuthError as exc:
        logger.warning("Token exchange failed: %s", exc.error)
        return _fail_login(f"Google Auth Error: {exc.description or exc.error}")

    factory = current_app.config.get("IDENTITY_FACTORY") or IdentitySession.from_token
    identity = factory(token)
    try:
        user = User.from_profile(identity.fetch_profile())
    except (IdentityError, ValueError) as exc:
        logger.warning("Could not load the Google profile: %s", exc)
        return _fail_login("Could not load your Google profile. Please try again.")

    controller = controller_for_request()
    controller.sign_in(identity, user)
    login_user(user)
    if controller.state.user is None:
        # The first fetch already reported the token as expired
        logout_user()
        return redirect(url_for("auth.login"))
    flash(f"Signed in as {user.email}", "success")
    return redirect(url_for("ledger.index"))


@auth_bp.route("/logout")
@login_required
def logout():
    controller_for_request().sign_out()
    logout_user()
    flash("Logged out", "info")
    return redirect(url_for("auth.login"))
