# Overview: HTML receipt routes; render a charge receipt or a layout preview.

from flask import Blueprint, current_app, render_template, request

from ..decorators import notification_page, require_auth, require_permission
from ..errors import AppError
from ..services import receipt_service
from ..validation import form_str


receipt_bp = Blueprint("receipt", __name__)


@receipt_bp.get("/card/receipt/")
@require_auth
def receipt_route():
    """
    Printable receipt for one charge (chg_id). Writes HTML rather than the
    JSON envelope; every failure renders the same notification page.
    """
    try:
        receipt = receipt_service.build_receipt(form_str(request.args, "chg_id"))
    except AppError as e:
        return notification_page("Cannot Show Receipt", e.message, button="Go Back")
    except Exception:
        current_app.logger.exception("Failed to build receipt")
        return notification_page(
            "Cannot Show Receipt",
            "An error occurred and the receipt cannot be displayed.",
            button="Go Back",
            status=500,
        )

    return render_template("receipt.html", receipt=receipt)


@receipt_bp.get("/company/receipt-preview/")
@require_auth
@require_permission("administrator")
def receipt_preview_route():
    try:
        receipt = receipt_service.build_preview()
    except AppError as e:
        return notification_page("Cannot Show Receipt", e.message, button="Go Back")

    return render_template("receipt.html", receipt=receipt)
