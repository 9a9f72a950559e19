from django.core.management.base import BaseCommand

from catalog.models import Template, TemplateType
from orders.models import Voucher, DiscountType

CATALOG = [
    {
        "slug": "letterinspace",
        "name": "Letter In Space",
        "description": "A 3D galaxy with your photos orbiting a glowing heart.",
        "image_url": "/static/catalog/space.jpg",
        "price": 49000,
        "template_type": TemplateType.GALAXY,
    },
    {
        "slug": "christmastree",
        "name": "Christmas Tree",
        "description": "A snowy Christmas tree decorated with your memories.",
        "image_url": "/static/catalog/christmastree.jpg",
        "price": 49000,
        "template_type": TemplateType.CHRISTMAS,
    },
    {
        "slug": "loveletter",
        "name": "Love Letter",
        "description": "An animated envelope that opens into your letter.",
        "image_url": "/static/catalog/loveletter.jpg",
        "price": 49000,
        "template_type": TemplateType.LOVELETTER,
    },
]


class Command(BaseCommand):
    help = "Seed the template catalog and a sample voucher. Safe to run repeatedly."

    def add_arguments(self, parser):
        parser.add_argument("--no-voucher", action="store_true", help="Skip the sample WELCOME10 voucher.")

    def handle(self, *args, **opts):
        for entry in CATALOG:
            template, created = Template.objects.update_or_create(
                slug=entry["slug"], defaults={k: v for k, v in entry.items() if k != "slug"}
            )
            verb = "created" if created else "updated"
            self.stdout.write(f"{verb}: {template}")

        if not opts["no_voucher"]:
            voucher, created = Voucher.objects.get_or_create(
                code="WELCOME10",
                defaults={
                    "discount_type": DiscountType.PERCENTAGE,
                    "discount_value": 10,
                    "max_uses": 100,
                },
            )
            self.stdout.write(f"{'created' if created else 'kept'}: voucher {voucher.code}")

        self.stdout.write(self.style.SUCCESS("Catalog seeded."))
