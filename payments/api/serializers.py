from rest_framework import serializers


def _positive_amount(value):
    if value <= 0:
        raise serializers.ValidationError("Ensure this value is greater than 0.")
    return value


class AmountField(serializers.DecimalField):
    """Any positive number; rounding to cents happens when the intention is built."""

    def __init__(self, **kwargs):
        kwargs.setdefault("validators", []).append(_positive_amount)
        super().__init__(max_digits=None, decimal_places=None, **kwargs)


class PaymobItemSerializer(serializers.Serializer):
    name = serializers.CharField(trim_whitespace=True, min_length=1)
    price = AmountField()
    quantity = serializers.IntegerField(min_value=1)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class PaymobBillingSerializer(serializers.Serializer):
    firstName = serializers.CharField(min_length=1)
    lastName = serializers.CharField(min_length=1)
    email = serializers.EmailField()
    phone = serializers.CharField(min_length=5)
    address = serializers.CharField(min_length=3)
    city = serializers.CharField(min_length=2)
    state = serializers.CharField(required=False, allow_blank=True)
    postalCode = serializers.CharField(required=False, allow_blank=True)
    country = serializers.CharField(required=False, allow_blank=True)


class PaymobRequestSerializer(serializers.Serializer):
    amount = AmountField()
    currency = serializers.CharField(min_length=1, required=False, default="EGP")
    merchantOrderId = serializers.CharField(min_length=3)
    billing = PaymobBillingSerializer()
    items = PaymobItemSerializer(many=True, allow_empty=False)


class PaymobPaymentResponseSerializer(serializers.Serializer):
    iframeUrl = serializers.CharField()
    paymobOrderId = serializers.CharField()
    paymentToken = serializers.CharField()


class WebhookAckSerializer(serializers.Serializer):
    received = serializers.BooleanField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()


class PaymentStatusSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=["success", "pending", "failed", "invalid"])
    order_number = serializers.CharField(allow_null=True)
    payment_status = serializers.CharField()
    total_amount = serializers.CharField(allow_null=True)
    order_error = serializers.CharField(allow_null=True)
