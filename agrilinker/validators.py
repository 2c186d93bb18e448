"""Form-level validation shared by the account, product and loan endpoints."""
import math
import re
from datetime import datetime

from agrilinker.errors import ValidationError

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
# At least one letter, one digit and one special character, six or more characters
PASSWORD_PATTERN = re.compile(r'^(?=.*[A-Za-z])(?=.*\d)(?=.*[!@#$%^&*])[A-Za-z\d!@#$%^&*]{6,}$')
NID_PATTERN = re.compile(r'^\d{4}-\d{3}-\d{4}$')


def clean_text(value, field, default=''):
    """Stripped text from form or JSON input; numbers, lists and objects are rejected."""
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be text')
    return value.strip()


def text_field(data, field, default='', required=False):
    value = clean_text(data.get(field), field, default)
    if required and not value:
        raise ValidationError(f'{field} is required')
    return value


def normalize_email(value):
    return clean_text(value, 'email').lower()


def require_fields(data, *fields):
    """Raise if any of the named fields is missing or blank."""
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f'{field} is required')


def validate_email(email):
    if not EMAIL_PATTERN.match(email or ''):
        raise ValidationError('Invalid email format. Please enter a valid email.')
    return email


def validate_password(password, confirm_password=None):
    """Apply the signup password policy."""
    password = password or ''
    if not isinstance(password, str):
        raise ValidationError('password must be text')
    if len(password) < 6:
        raise ValidationError('Password must be at least 6 characters long')
    if not PASSWORD_PATTERN.match(password):
        raise ValidationError(
            'Password must contain at least one letter, one number, and one special character'
        )
    if confirm_password is not None and password != confirm_password:
        raise ValidationError('Passwords do not match!')
    return password


def format_nid(value):
    """Insert dashes into a raw NID entry the way the profile form does (1234-567-8901...)."""
    digits = re.sub(r'\D', '', value or '')
    formatted = re.sub(r'(\d{4})(\d)', r'\1-\2', digits, count=1)
    formatted = re.sub(r'(\d{4}-\d{3})(\d)', r'\1-\2', formatted, count=1)
    formatted = re.sub(r'(\d{4}-\d{3}-\d{4})(\d)', r'\1-\2', formatted, count=1)
    return formatted[:14]


def validate_nid(nid_number):
    """Empty NID is allowed; otherwise it must look like 1234-567-8901."""
    if nid_number and not NID_PATTERN.match(nid_number):
        raise ValidationError('Please enter a valid NID number (e.g., 1234-567-8901)')
    return nid_number or ''


def positive_number(value, field):
    """Parse a strictly positive, finite number from form or JSON input."""
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'{field} must be a number')
    if number <= 0:
        raise ValidationError(f'{field} must be greater than zero')
    return number


def positive_int(value, field):
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'{field} must be a whole number')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'{field} must be a whole number')
    if number < 1:
        raise ValidationError(f'{field} must be at least 1')
    return number


def parse_date(value, field):
    """Parse an optional YYYY-MM-DD date."""
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a date in YYYY-MM-DD format')
