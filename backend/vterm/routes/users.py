# Overview: Flask API routes for user management; parses form input and returns JSON envelopes.

from flask import Blueprint, current_app, g, request

from .. import output
from ..decorators import require_auth, require_permission
from ..errors import AppError
from ..money import parse_id
from ..services import auth_service
from ..validation import form_str, parse_bool


users_bp = Blueprint("users", __name__, url_prefix="/users")


def _permission_flags(form) -> dict:
    """Form field names -> User columns."""
    return {
        "add_cards": parse_bool(form.get("addCards")),
        "remove_cards": parse_bool(form.get("removeCards")),
        "charge_cards": parse_bool(form.get("chargeCards")),
        "view_reports": parse_bool(form.get("reports")),
        "administrator": parse_bool(form.get("admin")),
        "active": parse_bool(form.get("active")),
    }


@users_bp.post("/add/")
@require_auth
@require_permission("administrator")
def add_user_route():
    try:
        auth_service.add_user(
            form_str(request.form, "username"),
            request.form.get("password1", ""),
            request.form.get("password2", ""),
            **_permission_flags(request.form),
        )
        return output.success("addNewUser")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to add user")
        return output.internal_error()


@users_bp.get("/get/")
@require_auth
def get_user_route():
    try:
        user_id = parse_id(request.args.get("userId"))
        return output.success("findUser", auth_service.get_user_data(user_id))
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to get user")
        return output.internal_error()


@users_bp.get("/get/all/")
@require_auth
@require_permission("administrator")
def list_users_route():
    try:
        return output.success("userList", auth_service.list_users())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to list users")
        return output.internal_error()


@users_bp.post("/change-pwd/")
@require_auth
@require_permission("administrator")
def change_password_route():
    try:
        auth_service.change_password(
            parse_id(request.form.get("userId")),
            request.form.get("pass1", ""),
            request.form.get("pass2", ""),
        )
        return output.success("userChangePassword")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to change password")
        return output.internal_error()


@users_bp.post("/update/")
@require_auth
@require_permission("administrator")
def update_permissions_route():
    try:
        auth_service.update_permissions(
            g.current_user.id,
            parse_id(request.form.get("userId")),
            **_permission_flags(request.form),
        )
        return output.success("userUpdatePermissins")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to update user permissions")
        return output.internal_error()
