from types import SimpleNamespace

from django.test import SimpleTestCase

from orders.pricing import compute_total, to_amount


def voucher(kind, value):
    return SimpleNamespace(discount_type=kind, discount_value=value)


class ComputeTotalTests(SimpleTestCase):
    def test_template_addons_tip_and_percentage_voucher(self):
        totals = compute_total(49000, [10000, 0], 5000, voucher("percentage", 10))
        self.assertEqual(totals, (64000, 57600, 6400))

    def test_no_voucher_total_equals_subtotal(self):
        totals = compute_total(49000, [], 10000)
        self.assertEqual(totals.subtotal, 59000)
        self.assertEqual(totals.total, 59000)
        self.assertEqual(totals.discount, 0)

    def test_fixed_voucher_never_goes_negative(self):
        totals = compute_total(49000, [], 0, voucher("fixed", 100000))
        self.assertEqual(totals.total, 0)
        self.assertEqual(totals.discount, 49000)

    def test_percentage_over_100_is_clamped(self):
        totals = compute_total(49000, [], 0, voucher("percentage", 150))
        self.assertEqual(totals.total, 0)

    def test_unknown_discount_type_is_ignored(self):
        self.assertEqual(compute_total(1000, [], 0, voucher("bogo", 50)).total, 1000)

    def test_bad_numbers_count_as_zero(self):
        totals = compute_total("abc", [None, "", -5, float("nan"), True], float("inf"))
        self.assertEqual(totals, (0, 0, 0))

    def test_numeric_strings_are_accepted(self):
        self.assertEqual(compute_total("49000", ["10000"], "5000").subtotal, 64000)

    def test_rounding_happens_once_at_the_end(self):
        # 100 * (1 - 33.333/100) = 66.667 -> 67
        totals = compute_total(100, [], 0, voucher("percentage", "33.333"))
        self.assertEqual(totals.total, 67)
        self.assertEqual(totals.discount, 33)
        # half-up
        self.assertEqual(compute_total("10.5").subtotal, 11)
        self.assertEqual(compute_total("0.25", ["0.25"]).subtotal, 1)

    def test_total_non_negative_and_discount_consistent(self):
        vouchers = [None, voucher("percentage", 0), voucher("percentage", 37.5), voucher("percentage", 100),
                    voucher("fixed", 1), voucher("fixed", 49999), voucher("fixed", 10 ** 9)]
        for price in (0, 1, 999, 49000, "12345.5"):
            for tip in (0, 3, 10000.49):
                for v in vouchers:
                    t = compute_total(price, [10000, 0], tip, v)
                    self.assertGreaterEqual(t.total, 0)
                    self.assertLessEqual(t.total, t.subtotal)
                    self.assertEqual(t.subtotal - t.total, t.discount)

    def test_huge_amounts_stay_exact(self):
        self.assertEqual(compute_total(1e30, [], 0), (10 ** 30, 10 ** 30, 0))
        self.assertEqual(compute_total(49000, [], 1e30).subtotal, 10 ** 30 + 49000)
        self.assertEqual(compute_total("1e400", ["1"]).subtotal, 10 ** 400 + 1)
        totals = compute_total(1e30, [], 0, voucher("percentage", 10))
        self.assertEqual(totals.total, 9 * 10 ** 29)
        self.assertEqual(totals.discount, 10 ** 29)


class ToAmountTests(SimpleTestCase):
    def test_coercion(self):
        self.assertEqual(to_amount("12.5"), to_amount(12.5))
        self.assertEqual(to_amount(" 7 "), 7)
        for bad in (None, "x", -1, float("-inf"), False, [], {}):
            self.assertEqual(to_amount(bad), 0, bad)

