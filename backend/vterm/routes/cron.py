# Overview: Infrastructure-triggered maintenance routes.

import hmac

from flask import Blueprint, current_app, request

from .. import output
from ..errors import AppError, NotAuthorized
from ..services import cron_service
from ..validation import form_str


cron_bp = Blueprint("cron", __name__, url_prefix="/cron")


def _is_cron_request() -> bool:
    """
    App Engine strips X-Appengine-Cron from outside traffic, so the header
    alone proves the scheduler sent it. Elsewhere a shared CRON_SECRET is
    required in the X-Cron-Secret header.
    """
    if request.headers.get("X-Appengine-Cron") == "true":
        return True
    secret = current_app.config.get("CRON_SECRET", "")
    given = request.headers.get("X-Cron-Secret", "")
    return bool(secret) and hmac.compare_digest(given.encode("utf-8"), secret.encode("utf-8"))


# App Engine cron sends GET; other schedulers POST
@cron_bp.route("/remove-expired-cards/", methods=["GET", "POST"])
def remove_expired_cards_route():
    if not _is_cron_request():
        return output.error(NotAuthorized())

    try:
        removed = cron_service.remove_expired_cards(form_str(request.values, "monthYear") or None)
        return output.success("expiredCardsRemoved", {"removed": removed})
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to remove expired cards")
        return output.internal_error()
