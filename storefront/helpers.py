from flask import current_app, request
from flask_login import current_user


def format_money(cents: int, currency=None) -> str:
    currency = (currency or current_app.config["CURRENCY"]).upper()
    return f"${cents/100:.2f}" if currency == "USD" else f"{cents/100:.2f} {currency}"


def payload():
    """Request body as a mapping, whether it came in as JSON or a form."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form


def parse_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def current_user_id():
    if current_user.is_authenticated:
        return int(current_user.id)
    return None
