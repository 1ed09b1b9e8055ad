"""
Payment Gateway - Razorpay-compatible REST client.

Handles:
- Order creation (amounts converted to the smallest currency unit)
- Payment lookup by payment id
- Checkout signature verification (HMAC-SHA256 over "order_id|payment_id")

The client is built once per app in init_payment_gateway() and stored in
app.extensions, so tests can swap in one backed by httpx.MockTransport.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import httpx
from flask import current_app

from utils.errors import UpstreamError, GatewayTimeoutError

logger = logging.getLogger(__name__)

SUCCESSFUL_PAYMENT_STATUSES = ('captured', 'authorized')


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of 'order_id|payment_id' keyed with the gateway secret."""
    message = f'{order_id}|{payment_id}'.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


class PaymentGateway:
    """Thin synchronous client for the gateway's orders and payments endpoints."""

    def __init__(self, key_id: str, key_secret: str, base_url: str,
                 timeout: float = 10, transport: Optional[httpx.BaseTransport] = None):
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url.rstrip('/'),
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport
        )

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.BaseTransport] = None) -> 'PaymentGateway':
        return cls(
            key_id=config.get('RAZORPAY_KEY_ID', ''),
            key_secret=config.get('RAZORPAY_KEY_SECRET', ''),
            base_url=config.get('PAYMENT_GATEWAY_URL', 'https://api.razorpay.com/v1'),
            timeout=config.get('PAYMENT_GATEWAY_TIMEOUT', 10),
            transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error('Gateway timeout on %s %s', method, path, exc_info=True)
            raise GatewayTimeoutError('Payment gateway timed out') from e
        except httpx.HTTPStatusError as e:
            logger.error('Gateway returned %s on %s %s: %s',
                         e.response.status_code, method, path, e.response.text[:500])
            raise UpstreamError('Payment gateway rejected the request',
                                gateway_status=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error('Gateway request failed on %s %s', method, path, exc_info=True)
            raise UpstreamError('Payment gateway is unreachable') from e

    def create_order(self, amount: int, currency: str = 'INR', receipt: str = None,
                     notes: Dict[str, Any] = None) -> Dict[str, Any]:
        """
        Create a gateway order.

        Args:
            amount: Amount in whole currency units (converted to paise)
            currency: ISO currency code
            receipt: Merchant reference, e.g. 'booking_42'
            notes: Free-form metadata stored with the order

        Returns:
            Order dict (at least 'id', 'amount', 'currency')

        Raises:
            UpstreamError: On any gateway failure
        """
        payload = {
            'amount': int(amount) * 100,
            'currency': currency,
            'receipt': receipt,
            'notes': notes or {}
        }
        order = self._request('POST', '/orders', json=payload)
        if not order.get('id'):
            raise UpstreamError('Payment gateway returned an order without id')
        return order

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        """
        Authoritative payment record ('status', 'method', 'order_id', ...).

        Raises:
            GatewayTimeoutError: If the gateway did not answer in time
            UpstreamError: On any other gateway failure
        """
        return self._request('GET', f'/payments/{payment_id}')

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Constant-time check of a checkout signature."""
        if not (order_id and payment_id and signature):
            return False
        expected = compute_signature(order_id, payment_id, self._key_secret)
        return hmac.compare_digest(expected, str(signature))


def init_payment_gateway(app, transport: Optional[httpx.BaseTransport] = None) -> PaymentGateway:
    """Build the app's gateway client and register it in app.extensions."""
    gateway = PaymentGateway.from_config(app.config, transport=transport)
    app.extensions['payment_gateway'] = gateway
    return gateway


def get_payment_gateway() -> PaymentGateway:
    """Gateway client for the current app."""
    return current_app.extensions['payment_gateway']
