from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Optional

from flask import jsonify, request

from ..core.exceptions import NotFoundError, ValidationError
from .datetime_utils import parse_iso_date
from .serialization import to_json

logger = logging.getLogger(__name__)


def ok(data=None, status: int = 200):
    return jsonify({"success": True, "data": to_json(data)}), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def json_endpoint(view):
    """Map domain errors to JSON responses; the message is passed through verbatim."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except Exception:
            logger.exception("Unhandled error in %s", request.endpoint)
            return fail("Internal server error", 500)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_date_arg(value: Optional[str], field_name: str = "date") -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value!r} (expected YYYY-MM-DD)") from None


def require_date_arg(value: Optional[str], field_name: str = "date") -> date:
    parsed = parse_date_arg(value, field_name)
    if parsed is None:
        raise ValidationError(f"{field_name} is required")
    return parsed


def int_arg(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}: {value!r}") from None
