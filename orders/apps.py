from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders & sites"

    def ready(self):
        # payment_resolved receivers (confirmation email)
        from . import receivers  # noqa: F401
