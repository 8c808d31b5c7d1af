# tests/conftest.py
# Shared fixtures: Paymob sample payloads, signing helpers, in-memory order store

import copy
import dataclasses
import hashlib
import hmac
from decimal import Decimal

import pytest

from orders.services.order_store import OrderSnapshot, OrderStoreError
from payments.services.paymob_hmac import (
    REDIRECT_FIELD_PATHS,
    WEBHOOK_FIELD_PATHS,
    build_signing_string,
)

TEST_HMAC_SECRET = "test-paymob-hmac-secret"


def sign(source, paths, secret=TEST_HMAC_SECRET):
    message = build_signing_string(source, paths)
    return hmac.new(secret.encode(), message.encode(), hashlib.sha512).hexdigest()


def sign_webhook(transaction, secret=TEST_HMAC_SECRET):
    return sign(transaction, WEBHOOK_FIELD_PATHS, secret)


def sign_redirect_params(params, secret=TEST_HMAC_SECRET):
    """Sign flat redirect query params the way Paymob does."""
    message = "".join(
        str(params.get(path, params.get(path.replace(".", "_"), "")) or "")
        for path in REDIRECT_FIELD_PATHS
    )
    return hmac.new(secret.encode(), message.encode(), hashlib.sha512).hexdigest()


class InMemoryOrderStore:
    """OrderStore double that records every write."""

    def __init__(self, *orders):
        self.orders = {o.order_number: o for o in orders}
        self.updates = []
        self.lookups = []
        self.fail_lookups = False
        self.fail_updates = False

    def find_order_by_number(self, order_number):
        self.lookups.append(order_number)
        if self.fail_lookups:
            raise OrderStoreError("lookup failed")
        return self.orders.get(order_number)

    def update_order_status(self, order_number, *, updated_at, status=None, payment_status=None):
        if self.fail_updates:
            raise OrderStoreError("update failed")
        self.updates.append(
            {"order_number": order_number, "updated_at": updated_at, "status": status, "payment_status": payment_status}
        )
        current = self.orders[order_number]
        self.orders[order_number] = dataclasses.replace(
            current,
            status=status if status is not None else current.status,
            payment_status=payment_status if payment_status is not None else current.payment_status,
        )


@pytest.fixture
def hmac_secret():
    return TEST_HMAC_SECRET


@pytest.fixture
def pending_order():
    return OrderSnapshot(
        order_number="ORD-1",
        status="processing",
        payment_status="pending",
        total_amount=Decimal("450.00"),
    )


@pytest.fixture
def order_store(pending_order):
    return InMemoryOrderStore(pending_order)


_SAMPLE_TRANSACTION = {
    "id": 192036465,
    "pending": False,
    "amount_cents": 45000,
    "success": True,
    "is_auth": False,
    "is_capture": False,
    "is_standalone_payment": True,
    "is_voided": False,
    "is_refunded": False,
    "is_3d_secure": True,
    "integration_id": 4512,
    "profile_id": 164295,
    "has_parent_transaction": False,
    "order": {
        "id": 217503754,
        "merchant_order_id": "ORD-1",
        "amount_cents": 45000,
        "currency": "EGP",
    },
    "created_at": "2026-10-19T14:02:11.418391",
    "transaction_processed_callback_responses": [],
    "currency": "EGP",
    "source_data": {
        "type": "card",
        "sub_type": "MasterCard",
        "pan": "2346",
        "owner": None,
    },
    "error_occured": False,
    "is_live": False,
    "other_integration_id": None,
    "refunded_amount_cents": 0,
    "captured_amount": 0,
    "merchant_staff_tag": None,
    "owner": 302852,
    "parent_transaction": None,
    "redirect_url": None,
    "data": {"message": "Approved"},
    "is_payment_locked": False,
    "payment_key_claims": {
        "sub": "302852",
        "user_id": 302852,
        "email": "buyer@example.com",
        "order_id": 217503754,
        "billing_data": {
            "apartment": "NA",
            "floor": "NA",
            "street": "El Tahrir St",
            "building": "NA",
            "city": "Cairo",
            "state": "NA",
            "country": "EG",
            "email": "buyer@example.com",
            "phone_number": "+201000000000",
            "postal_code": "NA",
            "first_name": "Mona",
            "last_name": "Adel",
            "extra_description": "NA",
        },
    },
}


@pytest.fixture
def transaction():
    return copy.deepcopy(_SAMPLE_TRANSACTION)


@pytest.fixture
def redirect_params():
    params = {
        "id": "192036465",
        "pending": "false",
        "amount_cents": "45000",
        "success": "true",
        "is_auth": "false",
        "is_capture": "false",
        "is_standalone_payment": "true",
        "is_voided": "false",
        "is_refunded": "false",
        "is_3d_secure": "true",
        "integration_id": "4512",
        "has_parent_transaction": "false",
        "order": "217503754",
        "created_at": "2026-10-19T14:02:11.418391",
        "currency": "EGP",
        "error_occured": "false",
        "owner": "302852",
        "source_data.type": "card",
        "source_data.sub_type": "MasterCard",
        "source_data.pan": "2346",
        "merchant_order_id": "ORD-1",
        "data.message": "Approved",
    }
    params["hmac"] = sign_redirect_params(params)
    return params
