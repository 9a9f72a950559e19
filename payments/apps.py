from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        # One hub + coordinator per process, owned here and handed to views
        # through get_coordinator().
        from .channel import PaymentStatusHub
        from .coordinator import PaymentCoordinator
        from .gateways.factory import build_gateways

        self.hub = PaymentStatusHub()
        self.coordinator = PaymentCoordinator(gateways=build_gateways(), hub=self.hub)
