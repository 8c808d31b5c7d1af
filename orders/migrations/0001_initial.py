import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_number", models.CharField(db_index=True, max_length=64, unique=True)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processing", "Processing"), ("confirmed", "Confirmed"), ("payment_failed", "Payment failed"), ("shipped", "Shipped"), ("delivered", "Delivered"), ("cancelled", "Cancelled")], db_index=True, default="processing", max_length=20)),
                ("payment_status", models.CharField(choices=[("pending", "Pending"), ("paid", "Paid"), ("failed", "Failed")], db_index=True, default="pending", max_length=20)),
                ("payment_method", models.CharField(choices=[("cod", "Cash on delivery"), ("paymob", "Paymob")], default="paymob", max_length=20)),
                ("channel", models.CharField(choices=[("b2c", "Retail"), ("b2b", "Wholesale")], default="b2c", max_length=10)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
