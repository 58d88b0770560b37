import random
import re
import string
import time
from collections import namedtuple

import stripe # Stripe Python library, used when PAYMENT_GATEWAY = 'stripe'.
from flask import current_app

from utils.security import normalize_card_number

# Outcome of a charge attempt. payment_id is None on failure.
ChargeResult = namedtuple('ChargeResult', ['success', 'message', 'payment_id'])

# First matching pattern wins.
CARD_BRAND_PATTERNS = (
    (re.compile(r'^4'), 'Visa'),
    (re.compile(r'^5[1-5]'), 'Mastercard'),
    (re.compile(r'^3[47]'), 'American Express'),
    (re.compile(r'^6(011|5)'), 'Discover'),
    (re.compile(r'^35'), 'JCB'),
)

# Test card numbers the simulated gateway rejects, with the message it returns.
SIMULATED_DECLINES = {
    '4000000000000002': 'Card declined',
    '4000000000000069': 'Expired card',
    '4000000000000127': 'Incorrect CVC',
}


def _now_ms():
    return int(time.time() * 1000)


def detect_card_brand(card_number):
    """Returns the card network name for a card number, or 'Unknown'."""
    number = re.sub(r'\s+', '', str(card_number or ''))
    for pattern, brand in CARD_BRAND_PATTERNS:
        if pattern.match(number):
            return brand
    return 'Unknown'


def generate_transaction_id():
    """'txn_<epoch ms>_<9 random base36 chars>', e.g. 'txn_1717171717171_k3j9x0a1b'."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f'txn_{_now_ms()}_{suffix}'


class SimulatedGateway:
    """
    Stand-in payment processor. Waits PAYMENT_SIMULATION_DELAY seconds, then declines the
    well-known test card numbers and approves everything else.
    """
    name = 'simulated'

    def __init__(self, delay=0):
        self.delay = delay

    def charge(self, card_data, amount):
        if self.delay:
            time.sleep(self.delay)
        number = normalize_card_number(card_data.get('card_number'))
        decline_message = SIMULATED_DECLINES.get(number)
        if decline_message:
            return ChargeResult(False, decline_message, None)
        return ChargeResult(True, 'Payment processed successfully', f'pay_{_now_ms()}')


class StripeGateway:
    """
    Charges through a Stripe PaymentIntent. The client collects the card with Stripe.js and
    sends the resulting PaymentMethod id as card_data['payment_method'].
    """
    name = 'stripe'

    def __init__(self, api_key, currency='USD'):
        self.api_key = api_key
        self.currency = currency.lower()

    def charge(self, card_data, amount):
        payment_method = card_data.get('payment_method')
        if not payment_method:
            return ChargeResult(False, 'A Stripe payment method is required', None)
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=int(round(float(amount) * 100)), # Stripe expects the smallest currency unit.
                currency=self.currency,
                payment_method=payment_method,
                confirm=True,
                automatic_payment_methods={'enabled': True, 'allow_redirects': 'never'},
                description=card_data.get('description'),
            )
        except stripe.CardError as e:
            current_app.logger.warning(f"Stripe CardError: {e.code} - {e.user_message}")
            return ChargeResult(False, e.user_message or 'Card declined', None)
        except stripe.StripeError as e:
            current_app.logger.error(f"Stripe error while charging: {e}", exc_info=True)
            return ChargeResult(False, e.user_message or 'Payment processing failed', None)

        if intent.status != 'succeeded':
            current_app.logger.warning(f"Stripe PaymentIntent {intent.id} ended in status {intent.status}")
            return ChargeResult(False, 'Payment could not be completed', None)
        return ChargeResult(True, 'Payment processed successfully', intent.id)


def get_payment_gateway():
    """Returns the gateway selected by the PAYMENT_GATEWAY setting."""
    config = current_app.config
    if config.get('PAYMENT_GATEWAY') == 'stripe':
        return StripeGateway(config.get('STRIPE_SECRET_KEY'), config.get('PAYMENT_CURRENCY', 'USD'))
    return SimulatedGateway(delay=config.get('PAYMENT_SIMULATION_DELAY', 0))
