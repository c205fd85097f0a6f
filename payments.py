"""Client for the external payment simulation service. Holds no local state."""
import logging
from decimal import Decimal, InvalidOperation

import requests

from errors import PaymentError, PaymentTimeout

logger = logging.getLogger(__name__)


class PaymentProxy:

    def __init__(self, base_url, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(config['PAYMENT_API_URL'], timeout=config.get('OUTBOUND_TIMEOUT', 10))

    @property
    def payments_url(self):
        return f'{self.base_url}/payments'

    def charge(self, card_details, amount, currency='usd'):
        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            raise ValueError("Amount must be a number")
        if not amount.is_finite():
            raise ValueError("Amount must be a number")
        if amount <= 0:
            raise ValueError("Amount must be positive")

        payload = {
            'card': {
                'number': card_details.get('number'),
                'exp_month': card_details.get('exp_month'),
                'exp_year': card_details.get('exp_year'),
                'cvc': card_details.get('cvc'),
                'name': card_details.get('name'),
            },
            'amount': str(amount),
            'currency': (currency or 'usd').lower(),
            'customer': card_details.get('customer'),
        }
        try:
            resp = requests.post(self.payments_url, json=payload, timeout=self.timeout)
        except requests.Timeout:
            logger.error("Payment service timed out after %ss", self.timeout)
            raise PaymentTimeout("payment service timed out")
        except requests.RequestException as e:
            logger.error("Payment service unreachable: %s", e)
            raise PaymentError("payment processing error")

        if not resp.ok:
            logger.error("Payment rejected with HTTP %s", resp.status_code)
            raise PaymentError("payment processing error")
        try:
            return resp.json()
        except ValueError:
            return {}

    def fetch_history(self, customer):
        """Past transactions for ``customer``; an empty list if the service fails."""
        try:
            resp = requests.get(self.payments_url, params={'customer': customer}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Could not load payment history for %s: %s", customer, e)
            return []
        if isinstance(data, dict):
            data = data.get('transactions', [])
        return data if isinstance(data, list) else []
