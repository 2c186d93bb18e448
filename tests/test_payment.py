"""
Tests for the simulated payment processor.
"""
from datetime import date

import pytest

from agrilinker.errors import ValidationError
from agrilinker.services.payment import (format_card_number, format_expiry_date, process_payment,
                                         validate_bkash, validate_card)
from tests.conftest import VALID_BKASH, VALID_CARD


def card(**overrides):
    details = dict(VALID_CARD)
    details.update(overrides)
    return details


class TestFormatting:

    def test_card_number_grouped_by_four(self):
        assert format_card_number('4242424242424242') == '4242 4242 4242 4242'
        assert format_card_number('4242-4242 42') == '4242 4242 42'

    def test_expiry_gets_slash(self):
        assert format_expiry_date('1227') == '12/27'
        assert format_expiry_date('1') == '1'


class TestCardValidation:

    def test_valid_card(self):
        cleaned = validate_card(card())
        assert cleaned['cardNumber'] == '4242424242424242'

    @pytest.mark.parametrize('field, value, message', [
        ('cardNumber', '4242 4242 4242', 'Card number must be 16 digits'),
        ('cardholderName', '  ', 'Cardholder name is required'),
        ('expiryDate', '13/30', 'Expiry date must be in MM/YY format'),
        ('cvv', '12', 'CVV must be 3 digits'),
    ])
    def test_invalid_fields(self, field, value, message):
        with pytest.raises(ValidationError) as exc:
            validate_card(card(**{field: value}))
        assert exc.value.message == message

    def test_expired_card(self):
        with pytest.raises(ValidationError) as exc:
            validate_card(card(expiryDate='05/24'), today=date(2024, 6, 1))
        assert exc.value.message == 'Card has expired'

    def test_card_expiring_this_month_is_accepted(self):
        validate_card(card(expiryDate='06/24'), today=date(2024, 6, 30))


class TestBkashValidation:

    def test_valid_wallet(self):
        assert validate_bkash(VALID_BKASH) == {'bkashNumber': '01712345678'}

    @pytest.mark.parametrize('number', ['0171234567', '01212345678', '8801712345678'])
    def test_bad_numbers(self, number):
        with pytest.raises(ValidationError):
            validate_bkash(dict(VALID_BKASH, bkashNumber=number))

    @pytest.mark.parametrize('pin', ['123', '123456', 'abcd'])
    def test_bad_pins(self, pin):
        with pytest.raises(ValidationError):
            validate_bkash(dict(VALID_BKASH, bkashPin=pin))


class TestProcessPayment:

    def test_waits_configured_delay(self, app):
        waits = []
        app.config['PAYMENT_PROCESSING_DELAY'] = 3
        with app.app_context():
            result = process_payment('card', card(), 150.0, sleep=waits.append)
        assert waits == [3]
        assert result == {
            'paymentMethod': 'card',
            'paymentStatus': 'completed',
            'amount': 150.0,
            'reference': '**** 4242',
        }

    def test_no_wait_when_delay_disabled(self, app):
        waits = []
        with app.app_context():
            result = process_payment('bkash', VALID_BKASH, 80, sleep=waits.append)
        assert waits == []
        assert result['reference'] == '017******78'

    def test_unknown_method(self, app):
        with app.app_context(), pytest.raises(ValidationError):
            process_payment('cash', {}, 10)

    def test_nothing_to_pay(self, app):
        with app.app_context(), pytest.raises(ValidationError) as exc:
            process_payment('card', card(), 0)
        assert exc.value.message == 'Nothing to pay for'
