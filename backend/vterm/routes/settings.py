# Overview: Flask API routes for company info and app settings.

from flask import Blueprint, current_app, request

from .. import output
from ..decorators import require_auth, require_permission
from ..errors import AppError
from ..services import settings_service
from ..validation import form_str, parse_bool, parse_float


settings_bp = Blueprint("settings", __name__)


# =============================================================================
# COMPANY
# =============================================================================

@settings_bp.get("/company/get/")
@require_auth
def get_company_route():
    try:
        return output.success("dataFound", settings_service.get_company().to_dict())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to get company info")
        return output.internal_error()


@settings_bp.post("/company/set/")
@require_auth
@require_permission("administrator")
def set_company_route():
    form = request.form
    try:
        company = settings_service.save_company(
            company_name=form_str(form, "name"),
            street=form_str(form, "street"),
            suite=form_str(form, "suite"),
            city=form_str(form, "city"),
            state=form_str(form, "state"),
            postal_code=form_str(form, "postal"),
            country=form_str(form, "country"),
            phone_num=form_str(form, "phone"),
            email=form_str(form, "email"),
            percent_fee=parse_float(form.get("percentFee")),
            fixed_fee=parse_float(form.get("fixedFee")),
            statement_descriptor=form_str(form, "descriptor"),
        )
        return output.success("dataSaved", company.to_dict())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to save company info")
        return output.internal_error()


# =============================================================================
# APP SETTINGS
# =============================================================================

@settings_bp.get("/app-settings/get/")
@require_auth
def get_app_settings_route():
    try:
        return output.success("dataFound", settings_service.get_app_settings().to_dict())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to get app settings")
        return output.internal_error()


@settings_bp.post("/app-settings/set/")
@require_auth
@require_permission("administrator")
def set_app_settings_route():
    form = request.form
    try:
        settings = settings_service.save_app_settings(
            require_customer_id=parse_bool(form.get("requireCustID")),
            customer_id_format=form_str(form, "custIDFormat"),
            report_timezone=form_str(form, "reportTimezone"),
        )
        return output.success("dataSaved", settings.to_dict())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to save app settings")
        return output.internal_error()


@settings_bp.get("/app-settings/generate-api-key/")
@require_auth
@require_permission("administrator")
def generate_api_key_route():
    try:
        return output.success("generateAPIKey", settings_service.generate_api_key())
    except AppError as e:
        return output.error(e)
    except Exception:
        current_app.logger.exception("Failed to generate api key")
        return output.internal_error()
