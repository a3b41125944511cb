from flask import Blueprint, abort, flash, redirect, render_template, request, url_for
from flask_login import login_required, logout_user
from ...controller import controller_for_request
from ...models import MONTHS


ledger_bp = Blueprint("ledger", __name__, url_prefix="/ledger")


def _after_operation(controller, success_message=None):
    """Redirect back to the ledger, or to sign-in when the session expired."""
    if controller.state.user is None:
        logout_user()
        return redirect(url_for("auth.login"))
    if success_message and controller.state.error is None:
        flash(success_message, "success")
    return redirect(url_for("ledger.index"))


def _load_for_change(controller, contribution_id):
    """Fresh copy of the record before a change; aborts with 403 for records of other users.

    Returns None when the record is gone or the fetch failed.
    """
    controller.refresh(clear_error=True)
    contribution = controller.find(contribution_id)
    if contribution is not None and not controller.can_modify(contribution):
        abort(403)
    return contribution


def _fetch_failed(controller):
    return controller.state.user is None or controller.state.error is not None


@ledger_bp.route("/")
@login_required
def index():
    controller = controller_for_request()
    month = request.args.get("month")
    if month:
        try:
            controller.select_month(month)
        except ValueError:
            flash(f"Unknown month: {month}", "warning")
            controller.refresh()
    else:
        controller.refresh()
    if controller.state.user is None:
        logout_user()
        return redirect(url_for("auth.login"))
    return render_template(
        "ledger/index.html",
        state=controller.state,
        months=MONTHS,
        total=controller.total,
        can_modify=controller.can_modify,
        editing_id=request.args.get("edit"),
    )


@ledger_bp.route("/month", methods=["POST"])
@login_required
def select_month():
    controller = controller_for_request()
    month = request.form.get("month")
    try:
        controller.select_month(month)
    except ValueError:
        flash(f"Unknown month: {month}", "warning")
    return _after_operation(controller)


@ledger_bp.route("/contributions", methods=["POST"])
@login_required
def add():
    controller = controller_for_request()
    ok = controller.add_contribution(request.form.get("amount"), request.form.get("note", ""))
    return _after_operation(controller, f"Contribution saved to {controller.state.month.value}" if ok else None)


@ledger_bp.route("/contributions/<contribution_id>/edit", methods=["POST"])
@login_required
def edit(contribution_id):
    controller = controller_for_request()
    _load_for_change(controller, contribution_id)
    if _fetch_failed(controller):
        return _after_operation(controller)
    ok = controller.edit_contribution(
        contribution_id,
        amount=request.form.get("amount"),
        note=request.form.get("note"),
    )
    return _after_operation(controller, "Contribution updated" if ok else None)


@ledger_bp.route("/contributions/<contribution_id>/delete", methods=["GET"])
@login_required
def confirm_delete(contribution_id):
    controller = controller_for_request()
    contribution = _load_for_change(controller, contribution_id)
    if _fetch_failed(controller):
        return _after_operation(controller)
    if contribution is None:
        abort(404)
    return render_template("ledger/confirm_delete.html", state=controller.state, contribution=contribution)


@ledger_bp.route("/contributions/<contribution_id>/delete", methods=["POST"])
@login_required
def delete(contribution_id):
    controller = controller_for_request()
    if request.form.get("confirm") != "yes":
        flash("Deletion cancelled", "info")
        return redirect(url_for("ledger.index"))
    _load_for_change(controller, contribution_id)
    if _fetch_failed(controller):
        return _after_operation(controller)
    ok = controller.delete_contribution(contribution_id, confirmed=True)
    return _after_operation(controller, "Contribution removed" if ok else None)


@ledger_bp.route("/error/dismiss", methods=["POST"])
@login_required
def dismiss_error():
    controller_for_request().dismiss_error()
    return redirect(request.referrer or url_for("ledger.index"))
