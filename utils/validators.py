"""
Input validation helper functions.
Provides validation for common input types.

validate_email is a predicate; the parse_* helpers return the converted
value and raise ValidationError with a readable message.
"""

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

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def parse_date(value, field_name: str = 'date') -> date:
    """
    Parse a YYYY-MM-DD string (or date) into a date.

    Raises:
        ValidationError: If the value is missing or malformed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f'{field_name} is required')
    try:
        # Accept full ISO timestamps as sent by browser date pickers
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'{field_name} must be a date in YYYY-MM-DD format')


def parse_date_range(check_in, check_out) -> tuple:
    """
    Parse and validate a half-open [check_in, check_out) stay.

    Returns:
        tuple: (check_in: date, check_out: date)

    Raises:
        ValidationError: If either date is invalid or check_out <= check_in
    """
    start = parse_date(check_in, 'check_in_date')
    end = parse_date(check_out, 'check_out_date')
    if start >= end:
        raise ValidationError('Check-out date must be after check-in date')
    return start, end


def parse_positive_integer(value, field_name: str) -> int:
    """
    Convert value to an integer greater than zero.

    Raises:
        ValidationError: If value is not a positive integer
    """
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a positive integer')
    try:
        number = int(value)
    except (ValueError, TypeError):
        raise ValidationError(f'{field_name} must be a positive integer')
    if isinstance(value, float) and value != number:
        raise ValidationError(f'{field_name} must be a positive integer')
    if number <= 0:
        raise ValidationError(f'{field_name} must be a positive integer')
    return number


def parse_amount(value, field_name: str, allow_zero: bool = True) -> float:
    """
    Convert value to a money amount rounded to cents.

    Raises:
        ValidationError: If value is not numeric or is negative (or zero
            when allow_zero is False)
    """
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a number')
    try:
        amount = round(float(value), 2)
    except (ValueError, TypeError):
        raise ValidationError(f'{field_name} must be a number')
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f'{field_name} must be a positive number')
    return amount


def parse_bool(value) -> bool:
    """Interpret query-string and JSON booleans ('true', '1', 1, True)."""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


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
