# Overview: HTML page routes: login, first-admin setup, logout and the main UI.

from flask import Blueprint, current_app, g, redirect, render_template, request, session

from ..decorators import notification_page, require_auth
from ..errors import AppError, CustomerNotFound, InvalidCredentials, UserInactive, UserNotFound
from ..services import auth_service, card_service, session_service, settings_service
from ..validation import form_str, parse_float


pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/")
def login_page():
    """
    Login form. Redirects to setup when no admin exists yet, and straight to
    the main page when the session is still valid.
    """
    if not auth_service.admin_exists():
        return redirect("/setup/")

    if not session.new:
        user_id = session_service.user_id_of(session)
        try:
            user = auth_service.find(user_id)
        except AppError:
            session_service.destroy(session)
            return notification_page(
                "Login Error",
                "There was an issue looking up your user account. Please go back and try logging in.",
                button="Go Back",
            )
        if not user.active:
            session_service.destroy(session)
            return notification_page(
                "Login Error",
                "You are not allowed access. Please contact an administrator.",
                button="Go Back",
            )
        return redirect("/main/")

    return render_template("login.html")


@pages_bp.get("/setup/")
def setup_page():
    if auth_service.admin_exists():
        return redirect("/")
    return render_template("create-admin.html")


@pages_bp.post("/create-admin/")
def create_admin_route():
    try:
        user = auth_service.create_admin(
            request.form.get("password1", ""),
            request.form.get("password2", ""),
        )
    except AppError as e:
        return notification_page("Initial Setup Error", e.message, link="/setup/", button="Try Again")
    except Exception:
        current_app.logger.exception("Failed to create admin user")
        return notification_page("Initial Setup Error", "An unexpected error occurred.", status=500)

    session_service.start(session, user.id, user.username)
    return redirect("/main/")


@pages_bp.route("/login/", methods=["GET", "POST"])
def login_route():
    if request.method == "GET":
        return redirect("/")

    username = form_str(request.form, "username")
    password = request.form.get("password", "")

    try:
        user = auth_service.authenticate(username, password)
    except (UserNotFound, UserInactive, InvalidCredentials) as e:
        return notification_page("Cannot Log In", e.message, button="Try Again")
    except Exception:
        current_app.logger.exception("Failed to log in user")
        return notification_page("Cannot Log In", "An unexpected error occurred.", status=500)

    session_service.start(session, user.id, user.username)
    return redirect("/main/")


@pages_bp.route("/logout/", methods=["GET", "POST"])
def logout_route():
    session_service.destroy(session)
    current_app.logger.info("Performing logout")
    return redirect("/?ref=logout")


@pages_bp.get("/main/")
@require_auth
def main_page():
    """
    Single-page UI.

    Query params customer_id, amount (cents), invoice and po prefill the
    charge form so other apps can link straight to a charge.
    """
    try:
        app_settings = settings_service.get_app_settings()
        company = settings_service.get_company()
    except AppError as e:
        return notification_page("Cannot Load Page", e.message, button="Try Again")

    context = {
        "user": g.current_user.to_dict(),
        "app_settings": app_settings.to_dict(),
        "company": company.to_dict(),
        "has_company_info_error": not company.company_name or not company.statement_descriptor,
        "stripe_publishable_key": current_app.config.get("STRIPE_PUBLISHABLE_KEY", ""),
        "autofill": None,
        "error": None,
    }

    customer_id = form_str(request.args, "customer_id")
    if customer_id:
        try:
            card = card_service.find_by_customer_id(customer_id)
        except CustomerNotFound:
            context["error"] = (
                "The form could not be autofilled because the customer ID you provided could not be found. "
                "The ID is either incorrect or the customer's credit card has not been added yet."
            )
        else:
            context["autofill"] = {
                "card": card,
                "amount": f"{parse_float(request.args.get('amount')) / 100:.2f}",
                "invoice": form_str(request.args, "invoice"),
                "po": form_str(request.args, "po"),
            }

    return render_template("main.html", **context)
