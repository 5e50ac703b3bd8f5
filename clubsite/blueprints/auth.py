"""Authentication blueprint for the admin dashboard."""

from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_wtf import FlaskForm
from wtforms import PasswordField
from wtforms.validators import DataRequired

from clubsite.auth import check_admin_password, grant_admin, is_admin, revoke_admin
from clubsite.extensions import limiter


class LoginForm(FlaskForm):
    password = PasswordField("Password", validators=[DataRequired()])


auth_bp = Blueprint("auth", __name__)


def _safe_next(target: str | None) -> str:
    # Only follow local redirects
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return url_for("admin.dashboard")


@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit("5 per minute")
def login():
    if is_admin():
        return redirect(_safe_next(request.args.get("next")))

    form = LoginForm()
    if form.validate_on_submit():
        if check_admin_password(form.password.data):
            grant_admin()
            flash("Logged in", "success")
            return redirect(_safe_next(request.args.get("next")))
        flash("Incorrect password", "error")

    return render_template("auth/login.html", form=form)


@auth_bp.route("/logout", methods=["POST", "GET"])
def logout():
    revoke_admin()
    flash("Logged out", "info")
    return redirect(url_for("public.home"))
