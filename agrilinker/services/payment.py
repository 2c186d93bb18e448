"""Simulated checkout payment.

There is no gateway behind this module. Card and bKash details are only
checked for format, the processor waits a fixed delay, and the payment is
reported as completed. Nothing is retried or reconciled.
"""
import logging
import re
import time
from datetime import date

from flask import current_app

from agrilinker.errors import ValidationError
from agrilinker.validators import text_field

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ['card', 'bkash']

CARD_NUMBER_PATTERN = re.compile(r'^\d{16}$')
EXPIRY_PATTERN = re.compile(r'^(0[1-9]|1[0-2])/(\d{2})$')
CVV_PATTERN = re.compile(r'^\d{3}$')
BKASH_PHONE_PATTERN = re.compile(r'^01[3-9]\d{8}$')
BKASH_PIN_PATTERN = re.compile(r'^\d{4,5}$')


def format_card_number(value):
    """Group card digits by four, as typed into the card field."""
    digits = re.sub(r'[^0-9]', '', re.sub(r'\s+', '', value or ''))
    match = re.search(r'\d{4,16}', digits)
    digits = match.group(0) if match else ''
    parts = [digits[i:i + 4] for i in range(0, len(digits), 4)]
    return ' '.join(parts) if parts else value


def format_expiry_date(value):
    """Turn raw digits into MM/YY."""
    digits = re.sub(r'[^0-9]', '', re.sub(r'\s+', '', value or ''))
    if len(digits) >= 2:
        return digits[:2] + '/' + digits[2:4]
    return digits


def _expiry_in_past(month, year, today):
    return (2000 + year, month) < (today.year, today.month)


def validate_card(details, today=None):
    """Check card fields; returns the cleaned values."""
    today = today or date.today()
    number = re.sub(r'\s+', '', text_field(details, 'cardNumber'))
    expiry = text_field(details, 'expiryDate')
    cvv = text_field(details, 'cvv')
    holder = text_field(details, 'cardholderName')

    if not CARD_NUMBER_PATTERN.match(number):
        raise ValidationError('Card number must be 16 digits')
    if not holder:
        raise ValidationError('Cardholder name is required')
    match = EXPIRY_PATTERN.match(expiry)
    if not match:
        raise ValidationError('Expiry date must be in MM/YY format')
    if _expiry_in_past(int(match.group(1)), int(match.group(2)), today):
        raise ValidationError('Card has expired')
    if not CVV_PATTERN.match(cvv):
        raise ValidationError('CVV must be 3 digits')

    return {'cardNumber': number, 'expiryDate': expiry, 'cardholderName': holder}


def validate_bkash(details):
    """Check the bKash wallet number and PIN."""
    phone = text_field(details, 'bkashNumber')
    pin = text_field(details, 'bkashPin')

    if not BKASH_PHONE_PATTERN.match(phone):
        raise ValidationError('bKash number must be a valid 11-digit mobile number (01XXXXXXXXX)')
    if not BKASH_PIN_PATTERN.match(pin):
        raise ValidationError('bKash PIN must be 4 or 5 digits')

    return {'bkashNumber': phone}


def mask(payment_method, cleaned):
    """Last four digits only, for logs and receipts."""
    if payment_method == 'card':
        return '**** ' + cleaned['cardNumber'][-4:]
    return cleaned['bkashNumber'][:3] + '******' + cleaned['bkashNumber'][-2:]


def process_payment(payment_method, details, amount, sleep=time.sleep):
    """Validate the submitted credentials, wait the fixed delay and report success."""
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError('Payment method must be card or bkash')
    if amount <= 0:
        raise ValidationError('Nothing to pay for')

    if payment_method == 'card':
        cleaned = validate_card(details)
    else:
        cleaned = validate_bkash(details)

    delay = current_app.config['PAYMENT_PROCESSING_DELAY']
    if delay:
        sleep(delay)

    logger.info('Simulated %s payment of %.2f %s via %s', payment_method, amount,
                current_app.config['CURRENCY'], mask(payment_method, cleaned))
    return {
        'paymentMethod': payment_method,
        'paymentStatus': 'completed',
        'amount': amount,
        'reference': mask(payment_method, cleaned),
    }
