"""
payments.models
One checkout attempt per row. The order_code is what the gateway sees and
what the status room is named after.
"""
from django.db import models
from django.utils import timezone

from catalog.models import TimeStampedModel


class PaymentMethod(models.TextChoices):
    PAYOS = "PAYOS", "PayOS (VND)"
    PAYPAL = "PAYPAL", "PayPal (USD)"


class SessionStatus(models.TextChoices):
    CREATED = "created", "Created"
    AWAITING_PAYMENT = "awaiting_payment", "Awaiting payment"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"
    TIMEOUT = "timeout", "Timed out"


TERMINAL_STATUSES = frozenset({
    SessionStatus.PAID.value,
    SessionStatus.CANCELLED.value,
    SessionStatus.FAILED.value,
    SessionStatus.TIMEOUT.value,
})


class PaymentSessionQuerySet(models.QuerySet):
    def open(self):
        return self.filter(status=SessionStatus.AWAITING_PAYMENT)

    def stale(self, cutoff):
        return self.open().filter(created_at__lt=cutoff)


class PaymentSession(TimeStampedModel):
    order = models.ForeignKey("orders.Order", on_delete=models.PROTECT, related_name="payment_sessions")
    order_code = models.PositiveBigIntegerField(unique=True)
    uid = models.CharField(max_length=128, blank=True, default="")
    method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    checkout_url = models.URLField(max_length=1000, blank=True, default="")
    gateway_reference = models.CharField(max_length=128, blank=True, default="", db_index=True)
    status = models.CharField(max_length=20, choices=SessionStatus.choices, default=SessionStatus.CREATED, db_index=True)
    message = models.CharField(max_length=255, blank=True, default="")

    # set when the gateway reports PAID after we already gave up on the session
    needs_reconciliation = models.BooleanField(default=False, db_index=True)
    late_status = models.CharField(max_length=20, blank=True, default="")
    resolved_at = models.DateTimeField(null=True, blank=True)

    objects = PaymentSessionQuerySet.as_manager()

    class Meta:
        ordering = ("-created_at",)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def age_seconds(self, now=None) -> float:
        now = now or timezone.now()
        return (now - self.created_at).total_seconds()

    def __str__(self) -> str:
        return f"{self.order_code} {self.method} {self.amount} {self.currency} ({self.status})"
