# Overview: Request and permission decorators for page and API routes.

from functools import wraps

from flask import current_app, g, redirect, render_template, session

from . import output
from .errors import NotAuthorized, SessionExpired, StoreError, UserNotFound
from .services import auth_service, session_service


def notification_page(title: str, message: str, link: str = "/", button: str = "Log In", status: int = 200):
    return render_template(
        "notifications.html",
        title=title,
        message=message,
        link_href=link,
        button_text=button,
    ), status


def require_auth(f):
    """
    Require a logged in, active user.

    Chain, in order:
    1. no session cookie            -> redirect to /
    2. user_id in cookie < 1        -> destroy session, "expired" page
    3. user cannot be loaded        -> destroy session, error page
    4. user inactive                -> destroy session, redirect to /
    5. renew cookie expiry, set g.current_user, call the route

    SECURITY: only user_id is taken from the cookie; the user row is always
    reloaded so revoked access applies on the next request.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(session, "new", True):
            return redirect("/")

        user_id = session_service.user_id_of(session)
        if user_id < 1:
            session_service.destroy(session)
            return notification_page("Session Expired", SessionExpired.default_message)

        try:
            user = auth_service.find(user_id)
        except (UserNotFound, StoreError) as exc:
            current_app.logger.warning("Session user %s could not be loaded: %s", user_id, exc.message)
            session_service.destroy(session)
            return notification_page(
                "Login Error",
                "There was an issue looking up your user account. Please go back and try logging in.",
                button="Go Back",
            )

        if not user.active:
            session_service.destroy(session)
            return redirect("/")

        session_service.renew(session)
        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_permission(flag: str):
    """
    Require one of the User permission flags (add_cards, remove_cards,
    charge_cards, view_reports, administrator).

    Reloads the user instead of trusting g.current_user so a permission
    revoked mid-request chain is honored. Fails with a NotAuthorized JSON
    envelope.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user_id = session_service.user_id_of(session)
            try:
                user = auth_service.find(user_id)
            except (UserNotFound, StoreError):
                return output.error(NotAuthorized())

            if not user.has_permission(flag):
                return output.error(NotAuthorized())

            return f(*args, **kwargs)

        return decorated_function
    return decorator
