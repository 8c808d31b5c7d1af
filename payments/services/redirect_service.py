# payments/services/redirect_service.py
"""Paymob transaction-response redirect (the shopper's browser comes back).

Display only. The webhook is the authoritative path for order state; a
redirect may arrive before it, after it, or never, so nothing here writes.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from orders.models import Order
from orders.services.order_store import OrderSnapshot, OrderStore, OrderStoreError
from payments.services.paymob_hmac import PaymobConfigurationError, verify_paymob_hmac

logger = logging.getLogger(__name__)


class PaymentOutcome(str, enum.Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"
    INVALID = "invalid"


# Flat keys Paymob sends as-is in the redirect query string
_FLAT_FIELDS = (
    "amount_cents",
    "created_at",
    "currency",
    "error_occured",
    "has_parent_transaction",
    "id",
    "integration_id",
    "is_3d_secure",
    "is_auth",
    "is_capture",
    "is_refunded",
    "is_standalone_payment",
    "is_voided",
    "order",
    "owner",
    "pending",
    "success",
)

_SOURCE_DATA_FIELDS = ("pan", "sub_type", "type")

LOOKUP_ERROR_MESSAGE = "Could not load the order details"


def normalize_params(params: Any) -> dict[str, str]:
    """Flatten a QueryDict (or plain mapping) keeping the last value per key."""
    if hasattr(params, "lists"):
        return {key: values[-1] for key, values in params.lists() if values}

    normalized: dict[str, str] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[-1]
        normalized[key] = value
    return normalized


def _to_bool(value: str | None) -> bool:
    return value in ("true", "1")


def build_redirect_transaction(params: Mapping[str, str]) -> dict[str, Any]:
    transaction: dict[str, Any] = {name: params.get(name) for name in _FLAT_FIELDS}
    transaction["source_data"] = {
        # Either "source_data.pan" or the pre-flattened "source_data_pan"
        name: params.get(f"source_data.{name}") or params.get(f"source_data_{name}")
        for name in _SOURCE_DATA_FIELDS
    }
    return transaction


@dataclass(frozen=True)
class PaymentStatusView:
    outcome: PaymentOutcome
    merchant_order_id: str | None
    order: OrderSnapshot | None = None
    order_error: str | None = None

    @property
    def display_order_number(self) -> str | None:
        if self.order is not None:
            return self.order.order_number
        return self.merchant_order_id

    @property
    def display_payment_status(self) -> str:
        if self.order is not None and self.order.payment_status:
            if self.order.payment_status == Order.PAYMENT_PAID:
                return "paid"
            if self.order.payment_status == Order.PAYMENT_PENDING:
                return "pending"
            return "failed"
        if self.outcome is PaymentOutcome.SUCCESS:
            return "paid"
        if self.outcome is PaymentOutcome.PENDING:
            return "pending"
        return "unpaid"

    @property
    def total_amount(self) -> Decimal | None:
        return self.order.total_amount if self.order is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "order_number": self.display_order_number,
            "payment_status": self.display_payment_status,
            "total_amount": str(self.total_amount) if self.total_amount is not None else None,
            "order_error": self.order_error,
        }


def classify(params: Mapping[str, str], *, hmac_secret: str | None = None) -> PaymentOutcome:
    """Outcome priority: invalid, success, pending, failed."""
    if not (params.get("hmac") and params.get("merchant_order_id")):
        return PaymentOutcome.INVALID

    try:
        verified = verify_paymob_hmac(
            build_redirect_transaction(params),
            params["hmac"],
            "redirect",
            secret=hmac_secret,
        )
    except PaymobConfigurationError:
        logger.exception("Paymob redirect could not be verified")
        verified = False

    if not verified:
        logger.warning(
            "Paymob redirect signature rejected (merchant_order_id=%s)",
            params.get("merchant_order_id"),
        )
        return PaymentOutcome.INVALID
    if _to_bool(params.get("success")):
        return PaymentOutcome.SUCCESS
    if _to_bool(params.get("pending")):
        return PaymentOutcome.PENDING
    return PaymentOutcome.FAILED


class PaymobRedirectService:
    def __init__(self, *, order_store: OrderStore, hmac_secret: str | None = None):
        self.order_store = order_store
        self.hmac_secret = hmac_secret

    def resolve(self, raw_params: Any) -> PaymentStatusView:
        params = normalize_params(raw_params)
        merchant_order_id = params.get("merchant_order_id") or None
        outcome = classify(params, hmac_secret=self.hmac_secret)

        if outcome is PaymentOutcome.INVALID or not merchant_order_id:
            return PaymentStatusView(outcome=outcome, merchant_order_id=merchant_order_id)

        order = None
        order_error = None
        try:
            order = self.order_store.find_order_by_number(merchant_order_id)
        except OrderStoreError:
            logger.exception("Paymob redirect: failed to fetch order %s", merchant_order_id)
            order_error = LOOKUP_ERROR_MESSAGE
        else:
            if order is None:
                logger.warning("Paymob redirect for unknown order %s", merchant_order_id)
                order_error = LOOKUP_ERROR_MESSAGE

        return PaymentStatusView(
            outcome=outcome,
            merchant_order_id=merchant_order_id,
            order=order,
            order_error=order_error,
        )
