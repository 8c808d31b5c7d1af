# payments/services/intention_service.py
"""Paymob Intention API client (checkout initiation).

One POST creates the intention; the shopper is then sent to the returned
iframe / unified checkout URL. Paymob later reports the result through the
webhook and the redirect handled in this package.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

import requests

from payments.services.paymob_hmac import PaymobConfig, PaymobConfigurationError, get_paymob_config

logger = logging.getLogger(__name__)

UNIFIED_CHECKOUT_URL = "https://accept.paymob.com/unifiedcheckout/"
REQUEST_TIMEOUT = 20


class PaymobAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class PaymobItem:
    name: str
    amount_cents: int
    quantity: int
    description: str = ""


@dataclass(frozen=True)
class BillingData:
    first_name: str
    last_name: str
    email: str
    phone_number: str
    street: str
    city: str
    country: str
    apartment: str | None = None
    floor: str | None = None
    building: str | None = None
    state: str | None = None
    postal_code: str | None = None

    def to_payload(self) -> dict:
        # Paymob rejects empty billing fields; "NA" is its documented filler
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "apartment": self.apartment if self.apartment is not None else "NA",
            "floor": self.floor if self.floor is not None else "NA",
            "street": self.street or "NA",
            "building": self.building if self.building is not None else "NA",
            "city": self.city or "Cairo",
            "state": self.state if self.state is not None else "NA",
            "country": self.country or "EGY",
            "postal_code": self.postal_code if self.postal_code is not None else "NA",
        }


@dataclass(frozen=True)
class PaymobPayment:
    intention_id: str
    client_secret: str
    iframe_url: str
    payment_keys: list = field(default_factory=list)


def to_cents(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_api_base(api_base: str) -> str:
    return re.sub(r"/api/?$", "", api_base.strip()).rstrip("/")


class PaymobIntentionClient:
    def __init__(self, config: PaymobConfig | None = None, *, session: requests.Session | None = None):
        self.config = config or get_paymob_config()
        self.session = session or requests.Session()

    def _check_config(self) -> None:
        if not (self.config.secret_key and self.config.integration_id):
            raise PaymobConfigurationError("Paymob configuration is missing")
        if not self.config.integration_id.isdigit():
            raise PaymobConfigurationError("PAYMOB_INTEGRATION_ID must be numeric")

    def _checkout_url(self, payload: dict) -> str:
        if payload.get("iframe_url"):
            return payload["iframe_url"]
        return (
            f"{UNIFIED_CHECKOUT_URL}?publicKey={self.config.public_key}"
            f"&clientSecret={payload.get('client_secret', '')}"
        )

    def build_request_body(
        self,
        *,
        amount_cents: int,
        currency: str,
        merchant_order_id: str,
        items: list[PaymobItem],
        billing: BillingData,
    ) -> dict:
        body = {
            "amount": amount_cents,
            "currency": currency,
            "payment_methods": [int(self.config.integration_id)],
            "items": [
                {
                    "name": item.name,
                    "amount": item.amount_cents,
                    "description": item.description or "",
                    "quantity": item.quantity,
                }
                for item in items
            ],
            "billing_data": billing.to_payload(),
            "special_reference": merchant_order_id,
        }
        if self.config.public_base_url:
            body["redirection_url"] = f"{self.config.public_base_url}/payment-status/"
        return body

    def create_payment(
        self,
        *,
        amount_cents: int,
        currency: str,
        merchant_order_id: str,
        items: list[PaymobItem],
        billing: BillingData,
    ) -> PaymobPayment:
        self._check_config()

        url = f"{normalize_api_base(self.config.api_base)}/v1/intention/"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Token {self.config.secret_key}",
        }
        body = self.build_request_body(
            amount_cents=amount_cents,
            currency=currency,
            merchant_order_id=merchant_order_id,
            items=items,
            billing=billing,
        )

        try:
            r = self.session.post(url, headers=headers, json=body, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise PaymobAPIError(f"Paymob request failed: {e}") from e

        is_json = "application/json" in r.headers.get("Content-Type", "")
        try:
            payload = r.json() if is_json and r.content else {}
        except ValueError:
            payload, is_json = {}, False

        if not (200 <= r.status_code < 300):
            logger.error("Paymob intention creation error (HTTP %s) for %s", r.status_code, merchant_order_id)
            if is_json:
                message = payload.get("detail") or payload.get("message") or "Failed to create payment intention"
            else:
                message = f"Unexpected response from Paymob (status {r.status_code})"
            raise PaymobAPIError(str(message), status_code=r.status_code)

        logger.info("Paymob intention %s created for %s", payload.get("id"), merchant_order_id)
        return PaymobPayment(
            intention_id=str(payload.get("id", "")),
            client_secret=payload.get("client_secret", ""),
            iframe_url=self._checkout_url(payload),
            payment_keys=payload.get("payment_keys") or [],
        )
