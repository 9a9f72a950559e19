"""
orders.emails

Customer-facing mail. Sent through the configured Django email backend
(Anymail/Mailgun in production, locmem in tests).

========= CHANGE LOG =========
2026-01-12 • ADD: send_order_confirmation() (text + HTML) for paid orders.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def _from_email() -> str:
    return (
        getattr(settings, "DEFAULT_FROM_EMAIL", "")
        or getattr(settings, "SERVER_EMAIL", "")
        or "no-reply@localhost"
    )


def send_order_confirmation(order) -> bool:
    """
    Mail the customer their gift link. Returns False when there is nobody to
    mail or the backend refused; the caller's payment state is never touched.
    """
    to_email = (order.customer_email or "").strip()
    if not to_email:
        return False

    context = {
        "order": order,
        "site_url": f"https://{order.site.full_url}",
        "customer_name": (order.customer_name or "").strip(),
        "template_name": order.template.name,
    }
    subject = f"Your gift is ready: {order.site.full_url}"
    text_body = render_to_string("orders/confirmation_email.txt", context)
    html_body = render_to_string("orders/confirmation_email.html", context)

    msg = EmailMultiAlternatives(subject=subject, body=text_body, from_email=_from_email(), to=[to_email])
    msg.attach_alternative(html_body, "text/html")
    try:
        msg.send(fail_silently=False)
    except Exception:
        logger.exception("Confirmation email failed for order %s (site %s)", order.pk, order.qr_name)
        return False

    logger.info("Confirmation email sent for order %s", order.pk)
    return True
