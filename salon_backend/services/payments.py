"""Client for the Paystack-style payment initialization API."""

import logging
import secrets
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from salon_backend.core import config

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the payment gateway rejects a request or cannot be reached."""


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> float:
    return amount / 100


def generate_payment_reference(prefix: str | None = None) -> str:
    prefix = prefix or config.PAYMENT_REFERENCE_PREFIX
    return f'{prefix}_{int(time.time() * 1000)}_{secrets.randbelow(1000)}'


class PaystackClient:
    def __init__(
        self,
        secret_key: str,
        base_url: str = 'https://api.paystack.co',
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
        if not self.secret_key:
            raise PaymentGatewayError('Payment gateway is not configured.')

        headers = {
            'Authorization': f'Bearer {self.secret_key}',
            'Content-Type': 'application/json',
        }
        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = client.request(method, endpoint, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error('Payment gateway request %s %s failed: %s', method, endpoint, exc)
            raise PaymentGatewayError('Payment gateway unavailable. Please try again.') from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get('status'):
            message = body.get('message') or f'HTTP error! status: {response.status_code}'
            logger.error('Payment gateway rejected %s %s: %s', method, endpoint, message)
            raise PaymentGatewayError(message)

        return body.get('data') or {}

    def initialize_payment(
        self,
        amount_minor: int,
        email: str,
        reference: str,
        currency: str,
        callback_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            'amount': int(amount_minor),
            'email': email,
            'reference': reference,
            'currency': currency,
            'metadata': metadata or {},
        }
        if callback_url:
            payload['callback_url'] = callback_url

        data = self._request('POST', '/transaction/initialize', json=payload)
        if not data.get('authorization_url'):
            raise PaymentGatewayError('Payment gateway did not return an authorization URL.')
        return data

    def verify_payment(self, reference: str) -> dict[str, Any]:
        return self._request('GET', f'/transaction/verify/{reference}')


def get_payment_gateway() -> PaystackClient:
    return PaystackClient(
        secret_key=config.PAYSTACK_SECRET_KEY,
        base_url=config.PAYSTACK_BASE_URL,
        timeout=config.PAYMENT_TIMEOUT_SECONDS,
    )
