"""
Input validation helper functions.
Provides validation for booking request fields.

The validate_* predicates return booleans; the parse_* helpers normalize
a raw request value or raise ValidationError naming the offending field.
"""

import json
import re
from datetime import date, datetime

from utils.errors import ValidationError


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'
    return bool(re.match(pattern, email))


def validate_phone(phone) -> bool:
    """
    Validate phone number: 10-15 digits once separators are removed.
    Accepts: +91 98765 43210, 9876543210, (987) 654-3210

    Args:
        phone: Phone number (str or int) to validate

    Returns:
        True if valid phone format
    """
    if phone is None or phone == '':
        return False

    cleaned = re.sub(r'\D', '', str(phone))
    return 10 <= len(cleaned) <= 15


def validate_name(name: str) -> bool:
    """Customer name must be 2-100 characters after trimming."""
    if not name or not isinstance(name, str):
        return False
    return 2 <= len(name.strip()) <= 100


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except (TypeError, ValueError):
        return False


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    sanitized = str(text).strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


# =============================================================================
# PARSERS
# =============================================================================

def parse_date(value, field: str = 'date') -> date:
    """
    Parse a YYYY-MM-DD string (or pass a date through).

    Raises:
        ValidationError: If missing or malformed
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not value:
        raise ValidationError('Date is required', field=field)
    if not validate_date_format(value):
        raise ValidationError('Invalid date format. Use YYYY-MM-DD', field=field)
    return datetime.strptime(value, '%Y-%m-%d').date()


def parse_whole_number(value, field: str, message: str) -> int:
    """
    Parse an int, an integral float (3.0) or a digit string.

    Raises:
        ValidationError: For booleans, fractions and anything non-numeric
    """
    if isinstance(value, bool):
        raise ValidationError(message, field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(message, field=field)
        return int(value)
    if isinstance(value, str) and re.fullmatch(r'\s*-?\d+\s*', value):
        return int(value)
    raise ValidationError(message, field=field)


def parse_hours(value, field: str = 'hours') -> list:
    """
    Parse requested hours into a sorted list of ints.

    Accepts a list, a JSON list string, a comma-separated string or a
    single int. Every hour must be 0-23, without duplicates, and a
    multi-hour request must be consecutive.

    Raises:
        ValidationError: If the hour set is empty, out of range or not consecutive
    """
    if value is None or value == '' or value == []:
        raise ValidationError('At least one hour is required', field=field)

    if isinstance(value, str):
        text = value.strip()
        if text.startswith('['):
            try:
                value = json.loads(text)
            except ValueError:
                raise ValidationError('Invalid hours list', field=field)
        else:
            value = [part for part in text.split(',') if part.strip()]
    elif not isinstance(value, (list, tuple)):
        value = [value]

    hours = []
    for raw in value:
        if isinstance(raw, bool):
            raise ValidationError('All hours must be between 0 and 23', field=field)
        try:
            hour = int(str(raw).strip())
        except ValueError:
            raise ValidationError('All hours must be between 0 and 23', field=field)
        if hour < 0 or hour > 23:
            raise ValidationError('All hours must be between 0 and 23', field=field)
        hours.append(hour)

    if not hours:
        raise ValidationError('At least one hour is required', field=field)

    if len(set(hours)) != len(hours):
        raise ValidationError('Duplicate hours selected', field=field)

    hours.sort()
    for previous, current in zip(hours, hours[1:]):
        if current != previous + 1:
            raise ValidationError(
                'Non-consecutive time slots selected. Please select consecutive '
                'time slots for multiple hour booking',
                field=field
            )

    return hours


def validate_customer(name, phone, email) -> dict:
    """
    Validate and normalize customer contact fields.

    Returns:
        dict with customer_name, phone (digits only), email

    Raises:
        ValidationError: On the first missing or malformed field
    """
    if not name:
        raise ValidationError('Name is required', field='name')
    if not validate_name(name):
        raise ValidationError('Name must be between 2 and 100 characters', field='name')

    if phone is None or phone == '':
        raise ValidationError('Phone is required', field='phone')
    if not validate_phone(phone):
        raise ValidationError('Phone number must be between 10-15 digits', field='phone')

    if not email:
        raise ValidationError('Email is required', field='email')
    email = str(email).strip()
    if not validate_email(email):
        raise ValidationError('Invalid email format', field='email')

    return {
        'customer_name': sanitize_input(name, 100),
        'phone': re.sub(r'\D', '', str(phone)),
        'email': email.lower()
    }


def hours_from_payload(data: dict) -> list:
    """
    Requested hours from a request payload.

    Accepts 'hours', 'startHours', or 'startHour' with an optional
    'duration' (default 1).

    Raises:
        ValidationError: If no usable hour field is present
    """
    if data.get('hours') not in (None, '', []):
        return parse_hours(data['hours'])

    if data.get('startHours') not in (None, '', []):
        return parse_hours(data['startHours'], field='startHours')

    start = data.get('startHour')
    if start is None or start == '':
        raise ValidationError('At least one hour is required', field='hours')

    start = parse_whole_number(start, 'startHour', 'Start hour must be a whole number')
    duration = parse_whole_number(data.get('duration') or 1, 'duration',
                                  'Duration must be a whole number of hours')

    if duration < 1:
        raise ValidationError('Duration must be at least one hour', field='duration')

    return parse_hours(list(range(start, start + duration)), field='startHour')
