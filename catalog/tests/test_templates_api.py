from django.core.management import call_command
from django.test import TestCase, Client

from catalog.models import Template, TemplateType
from orders.models import Voucher
from orders.tests.factories import make_template


class TemplateApiTests(TestCase):
    def setUp(self):
        self.galaxy = make_template("letterinspace", template_type=TemplateType.GALAXY)
        self.hidden = make_template("oldtemplate", template_type=TemplateType.LOVELETTER, is_active=False)
        self.client = Client()

    def test_list_returns_only_active_templates(self):
        resp = self.client.get("/api/templates")
        self.assertEqual(resp.status_code, 200, resp.content)
        payload = resp.json()
        self.assertTrue(payload["success"])
        slugs = [t["slug"] for t in payload["templates"]]
        self.assertEqual(slugs, ["letterinspace"])

    def test_detail_by_slug_and_by_id(self):
        by_slug = self.client.get("/api/templates/letterinspace").json()
        by_id = self.client.get(f"/api/templates/{self.galaxy.pk}").json()
        self.assertEqual(by_slug["template"]["id"], self.galaxy.pk)
        self.assertEqual(by_id["template"]["slug"], "letterinspace")
        self.assertEqual(by_id["template"]["price"], 49000)

    def test_unknown_template_is_404_envelope(self):
        resp = self.client.get("/api/templates/nope")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["success"], False)
        self.assertEqual(resp.json()["code"], "not_found")


class SeedCatalogTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_catalog", verbosity=0)
        call_command("seed_catalog", verbosity=0)
        self.assertEqual(Template.objects.count(), 3)
        self.assertEqual(
            dict(Template.objects.values_list("slug", "template_type")),
            {"letterinspace": "galaxy", "christmastree": "christmas", "loveletter": "loveletter"},
        )
        self.assertEqual(Voucher.objects.filter(code="WELCOME10").count(), 1)
