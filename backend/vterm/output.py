# Overview: JSON response envelope shared by every API route.

"""
Every JSON response has the same shape so the browser can parse it
uniformly:

    {"ok": bool, "type": str, "data": any, "datetime": "<ISO-8601 UTC>"}

Errors use type "error" and data {"error_type", "error_msg"}.
"""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from .errors import AppError
from .time_utils import iso8601


def _envelope(ok: bool, msg_type: str, data: Any, status: int):
    resp = jsonify({
        "ok": ok,
        "type": msg_type,
        "data": data,
        "datetime": iso8601(),
    })
    resp.status_code = status
    return resp


def success(msg_type: str, data: Any = None):
    return _envelope(True, msg_type, data, 200)


def error(exc: AppError):
    """400 response for a recoverable error. Logged so admins can follow up."""
    current_app.logger.warning("output.error: %s: %s", exc.error_type, exc.message)
    return _envelope(
        False,
        "error",
        {"error_type": exc.error_type, "error_msg": exc.message},
        400,
    )


def internal_error(message: str = "An unexpected error occurred. Please try again or contact an administrator."):
    return _envelope(
        False,
        "error",
        {"error_type": "internalError", "error_msg": message},
        500,
    )
