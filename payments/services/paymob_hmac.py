"""Paymob HMAC verification helpers.

Paymob signs callbacks by concatenating a fixed, ordered list of transaction
fields (no separators) and computing HMAC-SHA512 over the result with the
merchant's HMAC secret. The field list differs per callback:

- webhook (server-to-server, transaction processed callback)
- redirect (transaction response callback, the shopper's browser)

The order of each list is part of the contract with Paymob. Do not sort.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence, Union

from django.conf import settings

MessageType = Literal["webhook", "redirect"]

# Untrusted transaction tree as decoded from JSON / query params
TreeValue = Union[str, int, float, bool, None, Mapping[str, Any], Sequence[Any]]

WEBHOOK_FIELD_PATHS: tuple[str, ...] = (
    "id",
    "pending",
    "amount_cents",
    "success",
    "is_auth",
    "is_capture",
    "is_standalone_payment",
    "is_voided",
    "is_refunded",
    "is_3d_secure",
    "integration_id",
    "profile_id",
    "has_parent_transaction",
    "order.id",
    "created_at",
    "transaction_processed_callback_responses",
    "currency",
    "source_data.type",
    "source_data.sub_type",
    "source_data.pan",
    "source_data.pin",
    "source_data.owner",
    "source_data.issuer_bank",
    "source_data.gateway_integration_pk",
    "error_occured",
    "is_live",
    "other_integration_id",
    "refunded_amount_cents",
    "captured_amount",
    "merchant_staff_tag",
    "owner",
    "parent_transaction.id",
    "redirect_url",
    "order.merchant_order_id",
    "data.message",
    "is_payment_locked",
    "payment_key_claims.sub",
    "payment_key_claims.user_id",
    "payment_key_claims.email",
    "payment_key_claims.order_id",
    "payment_key_claims.billing_data.apartment",
    "payment_key_claims.billing_data.floor",
    "payment_key_claims.billing_data.street",
    "payment_key_claims.billing_data.building",
    "payment_key_claims.billing_data.city",
    "payment_key_claims.billing_data.state",
    "payment_key_claims.billing_data.country",
    "payment_key_claims.billing_data.email",
    "payment_key_claims.billing_data.phone_number",
    "payment_key_claims.billing_data.postal_code",
    "payment_key_claims.billing_data.first_name",
    "payment_key_claims.billing_data.last_name",
    "payment_key_claims.billing_data.extra_description",
    "payment_key_claims.billing_data.additional_description",
    "payment_key_claims.billing_data.merchant_reference",
    "payment_key_claims.billing_data.national_id",
    "payment_key_claims.billing_data.neighborhood",
    "payment_key_claims.billing_data.unit",
)

# "order" is the plain Paymob order id in redirect query strings
REDIRECT_FIELD_PATHS: tuple[str, ...] = (
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
    "source_data.pan",
    "source_data.sub_type",
    "source_data.type",
    "success",
)

FIELD_PATHS: dict[str, tuple[str, ...]] = {
    "webhook": WEBHOOK_FIELD_PATHS,
    "redirect": REDIRECT_FIELD_PATHS,
}

_HEX_RE = re.compile(r"[0-9a-f]+")

# hex length of a SHA-512 digest
_DIGEST_HEX_LENGTH = hashlib.sha512().digest_size * 2


class PaymobConfigurationError(RuntimeError):
    """Raised when a Paymob credential needed by the current operation is missing."""


@dataclass(frozen=True)
class PaymobConfig:
    hmac_secret: str
    secret_key: str
    public_key: str
    integration_id: str
    api_base: str
    public_base_url: str


def get_paymob_config() -> PaymobConfig:
    return PaymobConfig(
        hmac_secret=str(getattr(settings, "PAYMOB_HMAC_SECRET", "") or "").strip(),
        secret_key=str(getattr(settings, "PAYMOB_SECRET_KEY", "") or "").strip(),
        public_key=str(getattr(settings, "PAYMOB_PUBLIC_KEY", "") or "").strip(),
        integration_id=str(getattr(settings, "PAYMOB_INTEGRATION_ID", "") or "").strip(),
        api_base=str(getattr(settings, "PAYMOB_API_BASE", "") or "https://accept.paymob.com").strip(),
        public_base_url=str(getattr(settings, "PUBLIC_BASE_URL", "") or "").strip().rstrip("/"),
    )


def _resolve(source: TreeValue, path: str) -> TreeValue:
    current = source
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def _js_numbers(value: TreeValue) -> TreeValue:
    # JavaScript has one number type: 1.0 prints as 1 at any depth
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {key: _js_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_js_numbers(item) for item in value]
    return value


def _stringify(value: TreeValue) -> str:
    # Paymob renders values the way JavaScript's String() / JSON.stringify do
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    value = _js_numbers(value)
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def extract(source: TreeValue, path: str) -> str:
    """Return the string form of the value at dotted ``path``; "" when absent."""
    return _stringify(_resolve(source, path))


def build_signing_string(source: TreeValue, ordered_paths: Sequence[str]) -> str:
    return "".join(extract(source, path) for path in ordered_paths)


def _compute_digest(secret: str, message: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha512).hexdigest()


def verify_paymob_hmac(
    source: TreeValue,
    incoming_hmac: str | None,
    message_type: MessageType,
    *,
    secret: str | None = None,
) -> bool:
    """Check ``incoming_hmac`` against the signature Paymob would produce.

    Returns False for any malformed or mismatching signature. Raises
    ``PaymobConfigurationError`` when no HMAC secret is configured, since
    no callback could ever be trusted in that state.
    """
    if secret is None:
        secret = get_paymob_config().hmac_secret
    if not secret:
        raise PaymobConfigurationError("PAYMOB_HMAC_SECRET is not configured")

    if not incoming_hmac:
        return False

    normalized = str(incoming_hmac).lower()
    if not _HEX_RE.fullmatch(normalized):
        return False

    # Covers odd-length input too, so bytes.fromhex below cannot fail
    if len(normalized) != _DIGEST_HEX_LENGTH:
        return False

    paths = FIELD_PATHS[message_type]
    computed = _compute_digest(secret, build_signing_string(source, paths))

    return hmac.compare_digest(bytes.fromhex(computed), bytes.fromhex(normalized))
