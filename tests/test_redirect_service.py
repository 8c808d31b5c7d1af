# tests/test_redirect_service.py
# Redirect verification and display-only outcome

import pytest
from django.http import QueryDict

from payments.services.redirect_service import (
    LOOKUP_ERROR_MESSAGE,
    PaymentOutcome,
    PaymobRedirectService,
    build_redirect_transaction,
    classify,
    normalize_params,
)
from conftest import TEST_HMAC_SECRET, sign_redirect_params


@pytest.fixture
def service(order_store):
    return PaymobRedirectService(order_store=order_store, hmac_secret=TEST_HMAC_SECRET)


def _resign(params):
    params = dict(params)
    params.pop("hmac", None)
    params["hmac"] = sign_redirect_params(params)
    return params


class TestNormalizeParams:
    """Query param flattening"""

    def test_last_value_wins(self):
        qd = QueryDict("success=false&success=true&hmac=ab")
        assert normalize_params(qd) == {"success": "true", "hmac": "ab"}

    def test_plain_mapping_with_lists(self):
        assert normalize_params({"a": ["1", "2"], "b": "3", "c": []}) == {"a": "2", "b": "3"}


class TestBuildRedirectTransaction:
    """Transaction reassembly"""

    def test_dotted_source_data(self, redirect_params):
        tx = build_redirect_transaction(redirect_params)
        assert tx["source_data"] == {"pan": "2346", "sub_type": "MasterCard", "type": "card"}
        assert tx["order"] == "217503754"

    def test_underscore_source_data_fallback(self):
        tx = build_redirect_transaction({"source_data_pan": "1111", "source_data_type": "wallet"})
        assert tx["source_data"] == {"pan": "1111", "sub_type": None, "type": "wallet"}

    def test_extra_params_are_ignored(self, redirect_params):
        tx = build_redirect_transaction(redirect_params)
        assert "merchant_order_id" not in tx
        assert "data.message" not in tx


class TestClassify:
    """Outcome priority"""

    def test_success(self, redirect_params):
        assert classify(redirect_params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.SUCCESS

    def test_pending(self, redirect_params):
        params = _resign({**redirect_params, "success": "false", "pending": "true"})
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.PENDING

    def test_failed(self, redirect_params):
        params = _resign({**redirect_params, "success": "false", "pending": "false"})
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.FAILED

    def test_numeric_truthy_flag(self, redirect_params):
        params = _resign({**redirect_params, "success": "1"})
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.SUCCESS

    def test_other_truthy_strings_are_false(self, redirect_params):
        params = _resign({**redirect_params, "success": "True", "pending": "yes"})
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.FAILED

    @pytest.mark.parametrize("drop", ["hmac", "merchant_order_id"])
    def test_missing_required_params(self, redirect_params, drop):
        params = dict(redirect_params)
        del params[drop]
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.INVALID

    def test_tampered_amount_is_invalid(self, redirect_params):
        params = {**redirect_params, "amount_cents": "100"}
        assert params["success"] == "true"
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.INVALID

    def test_flipped_success_flag_is_invalid(self, redirect_params):
        params = _resign({**redirect_params, "success": "false"})
        params["success"] = "true"
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.INVALID

    def test_non_hex_signature(self, redirect_params):
        params = {**redirect_params, "hmac": "not-hex!!"}
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.INVALID

    def test_underscore_spelling_verifies(self, redirect_params):
        params = dict(redirect_params)
        for name in ("pan", "sub_type", "type"):
            params[f"source_data_{name}"] = params.pop(f"source_data.{name}")
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.SUCCESS

    def test_merchant_order_id_is_not_signed(self, redirect_params):
        # Paymob does not sign merchant_order_id on the redirect
        params = {**redirect_params, "merchant_order_id": "ORD-2"}
        assert classify(params, hmac_secret=TEST_HMAC_SECRET) is PaymentOutcome.SUCCESS

    def test_missing_secret_is_invalid(self, redirect_params):
        assert classify(redirect_params, hmac_secret="") is PaymentOutcome.INVALID


class TestPaymobRedirectService:
    """Read-only status page data"""

    def test_success_loads_order(self, service, order_store, redirect_params):
        view = service.resolve(redirect_params)

        assert view.outcome is PaymentOutcome.SUCCESS
        assert view.order.order_number == "ORD-1"
        assert view.display_payment_status == "pending"
        assert view.to_dict()["total_amount"] == "450.00"
        assert order_store.updates == []

    def test_invalid_skips_lookup(self, service, order_store, redirect_params):
        view = service.resolve({**redirect_params, "amount_cents": "1"})

        assert view.outcome is PaymentOutcome.INVALID
        assert view.order is None
        assert view.display_order_number == "ORD-1"
        assert view.display_payment_status == "unpaid"
        assert order_store.lookups == []

    def test_lookup_failure_degrades(self, service, order_store, redirect_params):
        order_store.fail_lookups = True

        view = service.resolve(redirect_params)

        assert view.outcome is PaymentOutcome.SUCCESS
        assert view.order is None
        assert view.order_error == LOOKUP_ERROR_MESSAGE
        assert view.display_order_number == "ORD-1"
        assert view.display_payment_status == "paid"
        assert view.total_amount is None

    def test_unknown_order_degrades(self, service, order_store, redirect_params):
        params = {**redirect_params, "merchant_order_id": "ORD-404"}

        view = service.resolve(params)

        assert view.outcome is PaymentOutcome.SUCCESS
        assert view.order is None
        assert view.display_order_number == "ORD-404"
        assert view.order_error == LOOKUP_ERROR_MESSAGE

    def test_never_writes(self, service, order_store, redirect_params):
        for params in (
            redirect_params,
            _resign({**redirect_params, "success": "false", "pending": "true"}),
            _resign({**redirect_params, "success": "false"}),
            {**redirect_params, "hmac": "00"},
        ):
            service.resolve(params)
        assert order_store.updates == []
