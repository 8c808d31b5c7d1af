# orders/services/order_store.py
"""Order lookup/update boundary used by the payment callbacks.

Handlers talk to an ``OrderStore`` and only ever see ``OrderSnapshot``
values, so the webhook and redirect flows can be exercised without a
database (see ``tests/conftest.py``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from django.db import DatabaseError

from orders.models import Order

logger = logging.getLogger(__name__)


class OrderStoreError(Exception):
    """The backing store failed to read or write an order."""


@dataclass(frozen=True)
class OrderSnapshot:
    order_number: str
    status: str
    payment_status: str
    total_amount: Decimal | None = None


class OrderStore(Protocol):
    def find_order_by_number(self, order_number: str) -> OrderSnapshot | None:
        ...

    def update_order_status(
        self,
        order_number: str,
        *,
        updated_at: datetime,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> None:
        ...


class DjangoOrderStore:
    """OrderStore over the ``orders.Order`` table."""

    def find_order_by_number(self, order_number: str) -> OrderSnapshot | None:
        try:
            row = (
                Order.objects
                .filter(order_number=order_number)
                .values("order_number", "status", "payment_status", "total_amount")
                .first()
            )
        except DatabaseError as e:
            raise OrderStoreError(f"Failed to load order {order_number}") from e

        if row is None:
            return None
        return OrderSnapshot(**row)

    def update_order_status(
        self,
        order_number: str,
        *,
        updated_at: datetime,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> None:
        fields = {"updated_at": updated_at}
        if status is not None:
            fields["status"] = status
        if payment_status is not None:
            fields["payment_status"] = payment_status

        try:
            updated = Order.objects.filter(order_number=order_number).update(**fields)
        except DatabaseError as e:
            raise OrderStoreError(f"Failed to update order {order_number}") from e

        if updated == 0:
            raise OrderStoreError(f"Order {order_number} vanished before update")

        logger.debug("Order %s updated: %s", order_number, sorted(fields))
