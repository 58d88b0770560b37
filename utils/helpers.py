from flask import request # For reading JSON bodies of the current request.
from datetime import date, timedelta, datetime # For date calculations.
from decimal import Decimal, ROUND_HALF_UP

from utils.errors import ServiceError


def get_json_body():
    """
    Returns the request's JSON body as a dict, or an empty dict when the body is missing
    or not JSON. Form-encoded bodies are accepted as well so simple clients can post forms.
    """
    data = request.get_json(silent=True)
    if data is None and request.form:
        data = request.form.to_dict()
    return data if isinstance(data, dict) else {}


def require_fields(data, fields, message=None):
    """
    Raises a 400 ServiceError if any of `fields` is missing or empty in `data`.

    Args:
        data (dict): Parsed request body.
        fields (iterable of str): Required keys.
        message (str, optional): Message to use instead of the generated one.
    """
    missing = [field for field in fields if data.get(field) in (None, '', [])]
    if missing:
        raise ServiceError(message or f"Missing required fields: {', '.join(missing)}", missing_fields=missing)


def parse_datetime(value, field_name='date'):
    """
    Parses an ISO 8601 date or datetime string ('2024-05-01' or '2024-05-01T10:00:00').
    A trailing 'Z' is accepted and the result is returned as a naive UTC datetime.

    Raises:
        ServiceError: If the value is missing or not a valid date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value or not isinstance(value, str):
        raise ServiceError(f"Invalid {field_name}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1]
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ServiceError(f"Invalid {field_name}. Use YYYY-MM-DD.")
    return parsed.replace(tzinfo=None)


def parse_float(value, field_name):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ServiceError(f"Invalid {field_name}")


def parse_int(value, field_name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ServiceError(f"Invalid {field_name}")


def round_to(value, places=3):
    """Rounds a money amount; storefront prices and totals are kept to 3 decimals."""
    return round(float(value or 0), places)


def round_percent(value):
    """Rounds to a whole number with halves going up (12.5 -> 13), unlike round()."""
    return int(Decimal(str(value or 0)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_date_range(request_args, default_range_str='last_30_days'):
    """
    Parses date range parameters from request arguments (request.args or a plain dict).
    Supports 'last_7_days', 'last_30_days', 'all_time' and 'custom' (with 'start_date' and
    'end_date' as YYYY-MM-DD).

    Returns:
        tuple: (start_date, end_date, error_response_tuple).
               For 'all_time' both dates are None. On error, the dates are None and
               error_response_tuple is ({"error": "message"}, http_status_code).
    """
    date_range_str = request_args.get('date_range', default_range_str)
    today = date.today()
    start_date_obj, end_date_obj = None, None

    if date_range_str not in ('last_7_days', 'last_30_days', 'all_time', 'custom'):
        # Unknown ranges fall back to the default.
        date_range_str = default_range_str

    if date_range_str == 'all_time':
        return None, None, None
    elif date_range_str == 'last_7_days':
        end_date_obj = today
        start_date_obj = today - timedelta(days=6) # 7 days including today.
    elif date_range_str == 'last_30_days':
        end_date_obj = today
        start_date_obj = today - timedelta(days=29)
    elif date_range_str == 'custom':
        start_date_param = request_args.get('start_date')
        end_date_param = request_args.get('end_date')
        if not (start_date_param and end_date_param):
            return None, None, ({"error": "Custom date range requires start_date and end_date."}, 400)
        try:
            start_date_obj = datetime.strptime(start_date_param, '%Y-%m-%d').date()
            end_date_obj = datetime.strptime(end_date_param, '%Y-%m-%d').date()
        except ValueError:
            return None, None, ({"error": "Invalid date format. Use YYYY-MM-DD."}, 400)
        if start_date_obj > end_date_obj:
            return None, None, ({"error": "Start date cannot be after end date."}, 400)

    return start_date_obj, end_date_obj, None


def date_range_bounds(start_date_obj, end_date_obj):
    """Turns an inclusive (date, date) range into [start datetime, end datetime) bounds."""
    if start_date_obj is None or end_date_obj is None:
        return None, None
    start = datetime(start_date_obj.year, start_date_obj.month, start_date_obj.day)
    end = datetime(end_date_obj.year, end_date_obj.month, end_date_obj.day) + timedelta(days=1)
    return start, end


def validate_form(form):
    """
    Validates a Flask-WTF form and raises a 400 ServiceError carrying the first error
    message, with every field error under `errors`.
    """
    if form.validate():
        return form
    messages = next(iter(form.errors.values()))
    raise ServiceError(messages[0], errors=form.errors)
