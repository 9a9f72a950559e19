from django.contrib import admin, messages

from . import get_coordinator
from .models import PaymentSession


@admin.register(PaymentSession)
class PaymentSessionAdmin(admin.ModelAdmin):
    list_display = (
        "order_code", "order", "method", "amount", "currency", "status",
        "needs_reconciliation", "late_status", "created_at", "resolved_at",
    )
    list_filter = ("method", "status", "needs_reconciliation")
    search_fields = ("order_code", "gateway_reference", "order__qr_name", "order__customer_email")
    raw_id_fields = ("order",)
    readonly_fields = (
        "order_code", "amount", "currency", "checkout_url", "gateway_reference",
        "status", "late_status", "resolved_at", "created_at", "updated_at",
    )
    actions = ("reconcile_as_paid", "expire_stale")

    @admin.action(description="Reconcile late payment as PAID (confirmed with gateway)")
    def reconcile_as_paid(self, request, queryset):
        coordinator = get_coordinator()
        done = sum(1 for session in queryset.filter(needs_reconciliation=True) if coordinator.reconcile_late_payment(session))
        self.message_user(request, f"{done} session(s) reconciled as paid.", messages.SUCCESS if done else messages.WARNING)

    @admin.action(description="Time out stale sessions now")
    def expire_stale(self, request, queryset):
        count = get_coordinator().expire_stale_sessions()
        self.message_user(request, f"{count} stale session(s) timed out.", messages.INFO)
