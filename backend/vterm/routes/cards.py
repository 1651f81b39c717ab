# Overview: Flask API routes for saved cards, charges, refunds and reports.

from flask import Blueprint, current_app, g, render_template, request

from .. import output
from ..decorators import require_auth, require_permission
from ..errors import AppError
from ..money import parse_id
from ..services import card_service, charge_service, report_service
from ..validation import form_str, parse_bool


cards_bp = Blueprint("cards", __name__, url_prefix="/card")


@cards_bp.post("/add/")
@require_auth
@require_permission("add_cards")
def add_card_route():
    """
    Save a card. cardToken, cardExp and cardLast4 come from Stripe.js in the
    browser; the card number itself never reaches this server.
    """
    form = request.form
    try:
        card_service.add(
            customer_id=form_str(form, "customerId"),
            customer_name=form_str(form, "customerName"),
            cardholder=form_str(form, "cardholder"),
            card_token=form_str(form, "cardToken"),
            card_exp=form_str(form, "cardExp"),
            card_last4=form_str(form, "cardLast4"),
            added_by=g.current_user.username,
        )
        return output.success("createCustomer")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to add card")
        return output.internal_error()


@cards_bp.get("/get/")
@require_auth
def get_card_route():
    try:
        card = card_service.find_by_id(parse_id(request.args.get("customerId")))
        return output.success("cardFound", card)
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to get card")
        return output.internal_error()


@cards_bp.get("/get/all/")
@require_auth
def list_cards_route():
    try:
        return output.success("cardList-datastore", card_service.list_cards())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to list cards")
        return output.internal_error()


@cards_bp.post("/remove/")
@require_auth
@require_permission("remove_cards")
def remove_card_route():
    try:
        card_service.remove(parse_id(request.form.get("customerId")))
        return output.success("removeCustomer")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to remove card")
        return output.internal_error()


# =============================================================================
# CHARGES
# =============================================================================

@cards_bp.post("/charge/")
@require_auth
@require_permission("charge_cards")
def charge_route():
    form = request.form
    try:
        receipt = charge_service.manual_charge(
            datastore_id=form_str(form, "datastoreId"),
            customer_name=form_str(form, "customerName"),
            amount=form_str(form, "amount"),
            invoice=form_str(form, "invoice"),
            po=form_str(form, "po"),
            charge_and_remove=parse_bool(form.get("chargeAndRemove")),
            username=g.current_user.username,
            authorize_only=parse_bool(form.get("authorizeOnly")),
        )
        return output.success("cardCharged", receipt)
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to charge card")
        return output.internal_error()


@cards_bp.post("/auto-charge/")
def auto_charge_route():
    """Charge from another application. Authenticated only by api_key."""
    form = request.form
    try:
        receipt = charge_service.auto_charge(
            api_key=form_str(form, "api_key"),
            customer_id=form_str(form, "customer_id"),
            amount=form_str(form, "amount"),
            invoice=form_str(form, "invoice"),
            po=form_str(form, "po"),
            auto_charge_flag=parse_bool(form.get("auto_charge")),
            referrer=form_str(form, "auto_charge_referrer") or form_str(form, "referrer"),
            reason=form_str(form, "auto_charge_reason"),
            level3_provided=parse_bool(form.get("level3_provided")),
            level3_params=form.get("level3_params", ""),
        )
        return output.success("cardCharged", receipt)
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to auto-charge card")
        return output.internal_error()


@cards_bp.post("/capture/")
@require_auth
@require_permission("charge_cards")
def capture_route():
    """Capture a charge that was created with authorizeOnly."""
    form = request.form
    try:
        result = charge_service.capture(
            charge_id=form_str(form, "chargeId") or form_str(form, "chargeID"),
            username=g.current_user.username,
        )
        return output.success("cardCharged", result)
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to capture charge")
        return output.internal_error()


@cards_bp.post("/refund/")
@require_auth
@require_permission("charge_cards")
def refund_route():
    form = request.form
    try:
        charge_service.refund(
            charge_id=form_str(form, "chargeId"),
            amount=form_str(form, "amount"),
            reason=form_str(form, "reason"),
            username=g.current_user.username,
        )
        return output.success("refund-done")
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to refund charge")
        return output.internal_error()


# =============================================================================
# REPORTS
# =============================================================================

@cards_bp.get("/report/")
@require_auth
@require_permission("view_reports")
def report_route():
    args = request.args
    try:
        report = report_service.build_report(
            datastore_id=form_str(args, "customer-id"),
            start_date=form_str(args, "start-date"),
            end_date=form_str(args, "end-date"),
            hours_to_utc=form_str(args, "timezone"),
            user=g.current_user.to_dict(),
        )
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to build report")
        return output.internal_error()

    return render_template("report.html", report=report)
