from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "status", "payment_status", "channel", "total_amount", "updated_at")
    list_filter = ("status", "payment_status", "channel", "payment_method")
    search_fields = ("order_number", "customer_email")
    readonly_fields = ("created_at", "updated_at")
