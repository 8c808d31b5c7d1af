# payments/services/webhook_service.py
"""Paymob transaction-processed webhook.

Flow: decode body -> verify HMAC (webhook field list) -> derive statuses ->
look up order -> write only the fields that changed.

Paymob retries any non-2xx delivery, so every failure after a valid
signature is reported with a status code the gateway will retry on.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Union
from urllib.parse import parse_qsl

from django.utils import timezone

from orders.models import Order
from orders.services.order_store import OrderStore, OrderStoreError
from payments.services.paymob_hmac import verify_paymob_hmac

logger = logging.getLogger(__name__)

TRANSACTION_EVENT = "TRANSACTION"


# ==============================
# ERRORS
# ==============================


class PaymobWebhookError(Exception):
    """A rejected notification; ``error`` is the only text the caller sees."""

    status_code = 400
    error = "Invalid payload"

    def __init__(self, error: str | None = None):
        if error is not None:
            self.error = error
        super().__init__(self.error)


class InvalidPayloadError(PaymobWebhookError):
    status_code = 400
    error = "Invalid payload"


class MissingMerchantOrderError(PaymobWebhookError):
    status_code = 400
    error = "Missing merchant order id"


class InvalidSignatureError(PaymobWebhookError):
    status_code = 401
    error = "Invalid signature"


class OrderNotFoundError(PaymobWebhookError):
    status_code = 404
    error = "Order not found"


class OrderUpdateError(PaymobWebhookError):
    status_code = 500
    error = "Failed to update order"


# ==============================
# BODY DECODING
# ==============================


@dataclass(frozen=True)
class JsonBody:
    value: Any


@dataclass(frozen=True)
class FormEncodedBody:
    fields: dict[str, str] = field(default_factory=dict)


WebhookBody = Union[JsonBody, FormEncodedBody]


def decode_body(content_type: str | None, raw_body: bytes) -> WebhookBody:
    """Pick the body representation from the declared content type.

    Anything that is not form-encoded is treated as JSON.
    """
    content_type = (content_type or "").lower()

    try:
        text = raw_body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidPayloadError() from e

    if "application/x-www-form-urlencoded" in content_type:
        # Repeated keys: last one wins
        return FormEncodedBody(fields=dict(parse_qsl(text, keep_blank_values=True)))

    try:
        return JsonBody(value=json.loads(text))
    except ValueError as e:
        raise InvalidPayloadError() from e


@dataclass(frozen=True)
class WebhookPayload:
    transaction: dict[str, Any] | None
    hmac: str | None
    type: str | None = None


def _decode_transaction(obj: Any) -> dict[str, Any] | None:
    # obj is a nested JSON string in form posts (and occasionally in JSON posts)
    if isinstance(obj, str):
        try:
            obj = json.loads(obj)
        except ValueError:
            return None
    return obj if isinstance(obj, dict) else None


def to_payload(body: WebhookBody) -> WebhookPayload:
    if isinstance(body, FormEncodedBody):
        record: Mapping[str, Any] = body.fields
    elif isinstance(body.value, dict):
        record = body.value
    else:
        raise InvalidPayloadError()

    signature = record.get("hmac")
    event_type = record.get("type")
    return WebhookPayload(
        transaction=_decode_transaction(record.get("obj")),
        hmac=str(signature) if signature else None,
        type=str(event_type) if event_type else None,
    )


# ==============================
# STATUS DERIVATION
# ==============================


def derive_payment_status(transaction: Mapping[str, Any]) -> str:
    if transaction.get("success"):
        return Order.PAYMENT_PAID
    if transaction.get("pending"):
        return Order.PAYMENT_PENDING
    return Order.PAYMENT_FAILED


def derive_order_status(transaction: Mapping[str, Any]) -> str:
    # Every non-success, non-pending outcome collapses into payment_failed
    if transaction.get("success"):
        return Order.STATUS_CONFIRMED
    if transaction.get("pending"):
        return Order.STATUS_PROCESSING
    return Order.STATUS_PAYMENT_FAILED


# ==============================
# HANDLER
# ==============================


@dataclass(frozen=True)
class WebhookResult:
    merchant_order_id: str
    status: str
    payment_status: str
    changed: tuple[str, ...]

    def to_response(self) -> dict[str, Any]:
        return {"received": True}


class PaymobWebhookService:
    """Applies verified Paymob notifications to the order store.

    The service holds no per-request state; one instance may serve
    concurrent deliveries.
    """

    def __init__(self, *, order_store: OrderStore, hmac_secret: str | None = None):
        self.order_store = order_store
        self.hmac_secret = hmac_secret

    def handle(
        self,
        *,
        content_type: str | None,
        raw_body: bytes,
        query_params: Mapping[str, str] | None = None,
    ) -> WebhookResult:
        payload = to_payload(decode_body(content_type, raw_body))
        logger.debug("Paymob webhook received (type=%s)", payload.type)
        if payload.type and payload.type != TRANSACTION_EVENT:
            logger.info("Paymob webhook with unexpected event type %s", payload.type)

        signature = payload.hmac
        if not signature and query_params:
            # Paymob puts the webhook hmac in the callback URL's query string
            signature = query_params.get("hmac") or None

        if payload.transaction is None or not signature:
            logger.warning("Paymob webhook rejected: missing obj or hmac")
            raise InvalidPayloadError()

        return self.apply(payload.transaction, signature)

    def apply(self, transaction: dict[str, Any], signature: str) -> WebhookResult:
        order_ref = transaction.get("order")
        merchant_order_id = order_ref.get("merchant_order_id") if isinstance(order_ref, dict) else None

        # Raises PaymobConfigurationError before anything is trusted
        if not verify_paymob_hmac(transaction, signature, "webhook", secret=self.hmac_secret):
            logger.warning(
                "Paymob webhook signature rejected (merchant_order_id=%s, transaction=%s)",
                merchant_order_id,
                transaction.get("id"),
            )
            raise InvalidSignatureError()

        if not merchant_order_id:
            raise MissingMerchantOrderError()
        merchant_order_id = str(merchant_order_id)

        payment_status = derive_payment_status(transaction)
        status = derive_order_status(transaction)

        try:
            existing = self.order_store.find_order_by_number(merchant_order_id)
        except OrderStoreError:
            logger.exception("Paymob webhook: order lookup failed (merchant_order_id=%s)", merchant_order_id)
            raise OrderUpdateError("Failed to load order")

        if existing is None:
            logger.warning("Paymob webhook for unknown order %s", merchant_order_id)
            raise OrderNotFoundError()

        updates: dict[str, str] = {}
        if existing.payment_status != payment_status:
            updates["payment_status"] = payment_status
        if existing.status != status:
            updates["status"] = status

        if not updates:
            logger.info(
                "Paymob webhook for %s already applied (%s/%s)",
                merchant_order_id, status, payment_status,
            )
            return WebhookResult(merchant_order_id, status, payment_status, changed=())

        try:
            self.order_store.update_order_status(
                merchant_order_id,
                updated_at=timezone.now(),
                **updates,
            )
        except OrderStoreError:
            logger.exception("Paymob webhook: failed to update order %s", merchant_order_id)
            raise OrderUpdateError()

        logger.info(
            "Paymob webhook updated order %s: %s",
            merchant_order_id,
            ", ".join(f"{k}={v}" for k, v in sorted(updates.items())),
        )
        return WebhookResult(merchant_order_id, status, payment_status, changed=tuple(sorted(updates)))
