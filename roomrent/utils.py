from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from roomrent.errors import ValidationError


def parse_date(value, field='date'):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f'Please provide a {field}.')
    try:
        return datetime.fromisoformat(str(value).replace('Z', '')).date()
    except ValueError:
        raise ValidationError(f'Invalid {field}. Use the YYYY-MM-DD format.')


def parse_id(value, field='id'):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'Invalid {field}.')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {field}.')


def parse_price(value, field='rent price'):
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(f'The {field} must be a number greater than 0.')
    if not price.is_finite() or price <= 0:
        raise ValidationError(f'The {field} must be a number greater than 0.')
    return price


def blank(value):
    return value is None or str(value).strip() == ''


def clean_text(value, field='value'):
    """Stripped text for a form or JSON scalar; None becomes an empty string."""
    if value is None:
        return ''
    if isinstance(value, (dict, list, bool)):
        raise ValidationError(f'Invalid {field}.')
    return str(value).strip()


def iso(value):
    return value.strftime('%Y-%m-%d') if value else None


def money(value):
    return str(value) if value is not None else None
