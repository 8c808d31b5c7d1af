# orders/models.py
from decimal import Decimal
from django.db import models
from django.utils import timezone


class Order(models.Model):
    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PAYMENT_FAILED = "payment_failed"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PAYMENT_FAILED, "Payment failed"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
    ]

    METHOD_COD = "cod"
    METHOD_PAYMOB = "paymob"

    METHOD_CHOICES = [
        (METHOD_COD, "Cash on delivery"),
        (METHOD_PAYMOB, "Paymob"),
    ]

    CHANNEL_B2C = "b2c"
    CHANNEL_B2B = "b2b"

    CHANNEL_CHOICES = [
        (CHANNEL_B2C, "Retail"),
        (CHANNEL_B2B, "Wholesale"),
    ]

    # Round-tripped through Paymob as merchant_order_id
    order_number = models.CharField(max_length=64, unique=True, db_index=True)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PROCESSING,
        db_index=True,
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING,
        db_index=True,
    )

    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=METHOD_PAYMOB)
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES, default=CHANNEL_B2C)

    customer_email = models.EmailField(blank=True)

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    # Written explicitly by the payment callbacks (queryset.update skips auto_now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order {self.order_number} ({self.status}/{self.payment_status})"
