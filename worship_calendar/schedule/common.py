import secrets
from datetime import date
from functools import wraps

from flask import Blueprint, abort, current_app, request

schedule_bp = Blueprint("schedule", __name__, url_prefix="/api")


def admin_required(f):
    """Gate a view behind the shared ``ADMIN_API_TOKEN``.

    The token is sent in the ``X-Admin-Token`` header.  With no token
    configured every admin request is refused.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_TOKEN") or ""
        provided = request.headers.get("X-Admin-Token", "")
        if not expected or not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            abort(403)
        return f(*args, **kwargs)

    return decorated_function


def _parse_iso_date(value, field="date"):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        abort(400, description=f"'{field}' must be a date formatted YYYY-MM-DD.")
