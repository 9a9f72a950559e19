"""Small builders shared by the app test suites."""
from catalog.models import Template, TemplateType
from orders import services
from orders.models import DiscountType, Voucher


def make_template(slug="letterinspace", price=49000, template_type=TemplateType.GALAXY, **kwargs):
    defaults = {"name": slug.title(), "description": "", "image_url": "", "is_active": True}
    defaults.update(kwargs)
    return Template.objects.create(slug=slug, price=price, template_type=template_type, **defaults)


def make_voucher(code="WELCOME10", discount_type=DiscountType.PERCENTAGE, value=10, **kwargs):
    return Voucher.objects.create(code=code, discount_type=discount_type, discount_value=value, **kwargs)


def order_payload(**overrides):
    payload = {
        "qrName": "abc123",
        "templateId": "letterinspace",
        "content": "Happy birthday\nLove you",
        "customerName": "Lan",
        "customerEmail": "lan@example.com",
    }
    payload.update(overrides)
    return payload


def make_order(**overrides):
    return services.create_order(order_payload(**overrides)).order
