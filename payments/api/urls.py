# payments/api/urls.py
from django.urls import path
from payments.api import views

urlpatterns = [
    path("paymob/", views.paymob_create_payment, name="paymob-create-payment"),

    # Paymob callbacks
    path("paymob/webhook/", views.paymob_webhook, name="paymob-webhook"),
    path("paymob/status/", views.paymob_payment_status, name="paymob-payment-status"),
]
