# payments/api/views.py
import logging

from django.conf import settings
from django.shortcuts import render
from django.views.decorators.http import require_GET
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from orders.services.order_store import DjangoOrderStore
from payments.api.serializers import (
    ErrorSerializer,
    PaymentStatusSerializer,
    PaymobPaymentResponseSerializer,
    PaymobRequestSerializer,
    WebhookAckSerializer,
)
from payments.services.intention_service import (
    BillingData,
    PaymobAPIError,
    PaymobIntentionClient,
    PaymobItem,
    to_cents,
)
from payments.services.paymob_hmac import PaymobConfigurationError, get_paymob_config
from payments.services.redirect_service import PaymobRedirectService
from payments.services.webhook_service import PaymobWebhookError, PaymobWebhookService

logger = logging.getLogger(__name__)

# Built once per process and shared by every request
order_store = DjangoOrderStore()


def _webhook_service() -> PaymobWebhookService:
    return PaymobWebhookService(order_store=order_store, hmac_secret=get_paymob_config().hmac_secret)


def _redirect_service() -> PaymobRedirectService:
    return PaymobRedirectService(order_store=order_store, hmac_secret=get_paymob_config().hmac_secret)


def _error(message: str, code: int, **extra) -> Response:
    return Response({"error": message, **extra}, status=code)


# ==============================
# PAYMOB CHECKOUT
# ==============================


@extend_schema(
    tags=["Payments"],
    summary="Create a Paymob payment intention for an order",
    request=PaymobRequestSerializer,
    responses={
        200: PaymobPaymentResponseSerializer,
        400: OpenApiResponse(description="Invalid request payload"),
        500: ErrorSerializer,
    },
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def paymob_create_payment(request):
    ser = PaymobRequestSerializer(data=request.data)
    if not ser.is_valid():
        return _error("Invalid request payload", status.HTTP_400_BAD_REQUEST, details=ser.errors)

    data = ser.validated_data
    billing = data["billing"]

    try:
        payment = PaymobIntentionClient().create_payment(
            amount_cents=to_cents(data["amount"]),
            currency=data["currency"],
            merchant_order_id=data["merchantOrderId"],
            items=[
                PaymobItem(
                    name=item["name"],
                    amount_cents=to_cents(item["price"]),
                    quantity=item["quantity"],
                    description=item.get("description", ""),
                )
                for item in data["items"]
            ],
            billing=BillingData(
                first_name=billing["firstName"],
                last_name=billing["lastName"],
                email=billing["email"],
                phone_number=billing["phone"],
                street=billing["address"],
                city=billing["city"],
                state=billing.get("state") or None,
                postal_code=billing.get("postalCode") or None,
                country=billing.get("country") or "EG",
            ),
        )
    except (PaymobConfigurationError, PaymobAPIError):
        logger.exception("Failed to create Paymob payment for %s", data["merchantOrderId"])
        return _error("Unable to initiate Paymob payment", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(
        {
            "iframeUrl": payment.iframe_url,
            "paymobOrderId": payment.intention_id,
            "paymentToken": payment.client_secret,
        },
        status=status.HTTP_200_OK,
    )


# ==============================
# PAYMOB CALLBACKS
# ==============================


@extend_schema(
    tags=["Payments"],
    summary="Paymob transaction processed callback (server-to-server)",
    request=None,
    responses={
        200: WebhookAckSerializer,
        400: ErrorSerializer,
        401: ErrorSerializer,
        404: ErrorSerializer,
        500: ErrorSerializer,
    },
)
@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def paymob_webhook(request):
    """Paymob webhook.

    Paymob calls this endpoint without any session, so authentication is
    disabled; the HMAC check is the only source of trust. Accepts JSON or
    form-encoded bodies (``obj`` is JSON-encoded in the latter).
    """
    try:
        result = _webhook_service().handle(
            content_type=request.content_type,
            raw_body=request.body,
            query_params=request.query_params,
        )
    except PaymobWebhookError as e:
        return _error(e.error, e.status_code)
    except PaymobConfigurationError:
        logger.error("Paymob webhook received but PAYMOB_HMAC_SECRET is not configured")
        return _error("Payment gateway is not configured", status.HTTP_500_INTERNAL_SERVER_ERROR)
    except Exception:
        logger.exception("Paymob webhook: unexpected error")
        return _error("Unexpected error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(result.to_response(), status=status.HTTP_200_OK)


@extend_schema(
    tags=["Payments"],
    summary="Verify a Paymob redirect (read-only)",
    responses={200: PaymentStatusSerializer},
)
@api_view(["GET"])
@permission_classes([permissions.AllowAny])
def paymob_payment_status(request):
    view = _redirect_service().resolve(request.query_params)
    return Response(view.to_dict(), status=status.HTTP_200_OK)


@require_GET
def payment_status_page(request):
    view = _redirect_service().resolve(request.GET)
    context = {
        "status": view,
        "orders_url": settings.STOREFRONT_ORDERS_URL,
        "checkout_url": settings.STOREFRONT_CHECKOUT_URL,
    }
    return render(request, "payments/payment_status.html", context)
