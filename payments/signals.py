from django.dispatch import Signal

# Sent after commit when a payment session reaches a terminal status.
# kwargs: session, order, status
payment_resolved = Signal()
