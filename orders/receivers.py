from django.dispatch import receiver

from payments.signals import payment_resolved

from .emails import send_order_confirmation
from .models import OrderStatus


@receiver(payment_resolved, dispatch_uid="orders.confirmation_email")
def email_on_paid(sender, order, status, **kwargs):
    if status != OrderStatus.PAID:
        return
    send_order_confirmation(order)
