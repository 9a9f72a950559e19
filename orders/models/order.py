"""
orders.models.order
One purchase. Status is the only field that changes after creation.
"""
from django.db import models

from catalog.models import TimeStampedModel


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"


class Order(TimeStampedModel):
    site = models.ForeignKey("orders.Site", on_delete=models.PROTECT, related_name="orders")
    template = models.ForeignKey("catalog.Template", on_delete=models.PROTECT, related_name="orders")

    # ---- customer ----
    customer_name = models.CharField(max_length=120, blank=True, null=True)
    customer_email = models.EmailField(blank=True, null=True)
    customer_phone = models.CharField(max_length=30, blank=True, null=True)

    # ---- submitted content ----
    qr_name = models.CharField(max_length=63, db_index=True)
    content = models.TextField(blank=True, default="")
    config = models.JSONField(default=dict, blank=True)
    music_url = models.CharField(max_length=500, blank=True, null=True)

    # ---- add-ons / amounts (whole VND) ----
    music_added = models.BooleanField(default=False)
    keychain_purchased = models.BooleanField(default=False)
    music_price = models.PositiveIntegerField(default=0)
    keychain_price = models.PositiveIntegerField(default=0)
    tip_amount = models.PositiveIntegerField(default=0)

    voucher = models.ForeignKey(
        "orders.Voucher", on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )
    voucher_code = models.CharField(max_length=40, blank=True, null=True)
    voucher_discount = models.PositiveIntegerField(default=0)

    subtotal = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"Order #{self.id} - {self.qr_name} - {self.status}"
