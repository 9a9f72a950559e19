import threading
from datetime import timedelta
from unittest import mock

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature
from django.utils import timezone

from catalog.models import TemplateType
from giftsite import errors
from orders import services
from orders.models import DiscountType, Order, OrderStatus, Site, Voucher
from orders.tests.factories import make_template, make_voucher, order_payload


class NameAvailabilityTests(TestCase):
    def setUp(self):
        self.template = make_template()

    def test_free_name(self):
        result = services.check_name_availability("NewGift")
        self.assertTrue(result.available)
        self.assertEqual(result.name, "newgift")
        self.assertEqual(result.full_url, f"newgift.{settings.BASE_DOMAIN}")

    def test_check_is_read_only_and_repeatable(self):
        services.create_order(order_payload(qrName="taken"))
        before = (Site.objects.count(), Order.objects.count())
        first = services.check_name_availability("taken")
        second = services.check_name_availability("TAKEN")
        self.assertEqual(first, second)
        self.assertFalse(first.available)
        self.assertEqual((Site.objects.count(), Order.objects.count()), before)

    def test_invalid_name_is_a_validation_error_not_a_lookup(self):
        with self.assertRaises(errors.ValidationError):
            services.check_name_availability("Has Spaces")


class CreateOrderTests(TestCase):
    def setUp(self):
        self.template = make_template()

    def test_creates_site_and_order(self):
        result = services.create_order(order_payload(tipAmount=10000, musicAdded=True))
        order, site = result.order, result.site
        self.assertEqual(site.name, "abc123")
        self.assertEqual(site.full_url, f"abc123.{settings.BASE_DOMAIN}")
        self.assertEqual(site.template_type, TemplateType.GALAXY)
        self.assertEqual(order.site_id, site.pk)
        self.assertEqual(order.subtotal, 49000 + 10000 + settings.MUSIC_PRICE)
        self.assertEqual(order.total_amount, order.subtotal)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.customer_email, "lan@example.com")

    def test_template_by_numeric_id(self):
        result = services.create_order(order_payload(templateId=str(self.template.pk)))
        self.assertEqual(result.order.template_id, self.template.pk)

    def test_explicit_template_type_wins(self):
        result = services.create_order(order_payload(templateType="loveletter", title="For you"))
        self.assertEqual(result.site.template_type, "loveletter")
        self.assertEqual(result.site.config["title"], "For you")

    def test_type_falls_back_to_catalog_row(self):
        make_template("snowglobe", template_type=TemplateType.CHRISTMAS)
        result = services.create_order(order_payload(templateId="snowglobe"))
        self.assertEqual(result.site.template_type, "christmas")

    def test_config_is_validated_and_stored(self):
        result = services.create_order(order_payload(
            imageUrls=["https://img/1.jpg", "https://img/2.jpg"],
            musicLink="https://music/1.mp3",
            heartText="Em",
            colorScheme={"background": "#000"},
            unknownField="dropped",
        ))
        self.assertEqual(result.site.config, {
            "content": "Happy birthday\nLove you",
            "imageUrls": ["https://img/1.jpg", "https://img/2.jpg"],
            "musicUrl": "https://music/1.mp3",
            "heartText": "Em",
            "colorScheme": {"background": "#000"},
        })
        self.assertEqual(result.order.music_url, "https://music/1.mp3")

    def test_bad_config_rejected_before_anything_is_written(self):
        with self.assertRaises(errors.ValidationError):
            services.create_order(order_payload(imageUrls="not-a-list"))
        self.assertFalse(Site.objects.exists())
        self.assertFalse(Order.objects.exists())

    def test_required_fields(self):
        with self.assertRaises(errors.ValidationError):
            services.create_order({"templateId": "letterinspace"})
        with self.assertRaises(errors.ValidationError):
            services.create_order({"qrName": "abc"})

    def test_name_still_invalid_after_lowercasing(self):
        with self.assertRaises(errors.ValidationError):
            services.create_order(order_payload(qrName="UP PER"))
        self.assertEqual(services.create_order(order_payload(qrName="UPPER")).site.name, "upper")

    def test_unknown_or_inactive_template_not_found(self):
        make_template("retired", is_active=False)
        with self.assertRaises(errors.NotFoundError):
            services.create_order(order_payload(templateId="nope"))
        with self.assertRaises(errors.NotFoundError):
            services.create_order(order_payload(templateId="retired"))

    def test_same_name_upserts_site(self):
        services.create_order(order_payload(content="first"))
        services.create_order(order_payload(qrName="ABC123", content="second"))
        self.assertEqual(Site.objects.filter(name="abc123").count(), 1)
        self.assertEqual(Site.objects.get(name="abc123").content, "second")
        self.assertEqual(Order.objects.filter(qr_name="abc123").count(), 2)

    def test_zero_total_order_is_paid(self):
        make_voucher("FREE", DiscountType.FIXED, 1000000)
        order = services.create_order(order_payload(voucherCode="free")).order
        self.assertEqual(order.total_amount, 0)
        self.assertEqual(order.status, OrderStatus.PAID)


class VoucherTests(TestCase):
    def setUp(self):
        self.template = make_template()

    def test_voucher_applied_and_counted(self):
        voucher = make_voucher("WELCOME10", value=10)
        order = services.create_order(order_payload(voucherCode="welcome10", tipAmount=10000)).order
        self.assertEqual(order.voucher_id, voucher.pk)
        self.assertEqual(order.voucher_code, "WELCOME10")
        self.assertEqual(order.voucher_discount, 5900)
        self.assertEqual(order.total_amount, 53100)
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 1)

    def test_invalid_voucher_is_not_fatal(self):
        make_voucher("OLD", expires_at=timezone.now() - timedelta(days=1))
        make_voucher("OFF", is_active=False)
        for code in ("NOPE", "OLD", "OFF"):
            order = services.create_order(order_payload(qrName=f"gift-{code.lower()}", voucherCode=code)).order
            self.assertEqual(order.voucher_discount, 0)
            self.assertIsNone(order.voucher)
            self.assertEqual(order.total_amount, 49000)

    def test_usage_cap_is_never_exceeded(self):
        voucher = make_voucher("ONCE", max_uses=1)
        first = services.create_order(order_payload(qrName="one", voucherCode="ONCE")).order
        second = services.create_order(order_payload(qrName="two", voucherCode="ONCE")).order
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 1)
        self.assertGreater(first.voucher_discount, 0)
        self.assertEqual(second.voucher_discount, 0)

    def test_claim_loses_race_when_cap_reached_meanwhile(self):
        voucher = make_voucher("ONCE", max_uses=1)
        stale = Voucher.objects.get(pk=voucher.pk)
        # another order claimed the last use between lookup and increment
        Voucher.objects.filter(pk=voucher.pk).update(used_count=1)
        with mock.patch("orders.services.find_applicable_voucher", return_value=stale):
            order = services.create_order(order_payload(voucherCode="ONCE")).order
        self.assertEqual(order.voucher_discount, 0)
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 1)

    def test_failed_order_rolls_back_voucher_increment(self):
        voucher = make_voucher("ONCE", max_uses=5)
        with mock.patch.object(Order.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(errors.TransactionError):
                services.create_order(order_payload(voucherCode="ONCE"))
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 0)
        self.assertFalse(Site.objects.exists())

    def test_unique_violation_becomes_conflict(self):
        with mock.patch("orders.services.upsert_site", side_effect=IntegrityError("duplicate key")):
            with self.assertRaises(errors.ConflictError) as ctx:
                services.create_order(order_payload())
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 409)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentVoucherClaimTests(TransactionTestCase):
    """Two buyers submit at the same moment for the last use of a voucher."""

    def test_last_use_goes_to_exactly_one_order(self):
        make_template()
        voucher = make_voucher("LASTONE", max_uses=1)
        barrier = threading.Barrier(2)
        orders, failures = [], []

        def place(name):
            try:
                barrier.wait(timeout=10)
                orders.append(services.create_order(order_payload(qrName=name, voucherCode="LASTONE")).order)
            except Exception as exc:
                failures.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=place, args=(name,)) for name in ("first", "second")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(failures, [])
        self.assertEqual(len(orders), 2)
        voucher.refresh_from_db()
        self.assertEqual(voucher.used_count, 1)
        self.assertEqual(Order.objects.filter(voucher_discount__gt=0).count(), 1)
        self.assertEqual(Order.objects.filter(voucher__isnull=True).count(), 1)


class GetOrderTests(TestCase):
    def test_not_found(self):
        for key in ("999", "abc", None):
            with self.assertRaises(errors.NotFoundError):
                services.get_order(key)
