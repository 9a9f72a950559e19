from django.core.exceptions import ImproperlyConfigured
from django.test import RequestFactory, SimpleTestCase, override_settings

from delivery.resolvers import HostHeaderResolver, QueryParamResolver, get_resolver


@override_settings(ALLOWED_HOSTS=["*"])
class HostHeaderResolverTests(SimpleTestCase):
    def setUp(self):
        self.rf = RequestFactory()
        self.resolver = HostHeaderResolver("inanhxink.com", ["order", "www"])

    def resolve(self, host):
        return self.resolver.resolve(self.rf.get("/", HTTP_HOST=host))

    def test_first_label_is_the_site(self):
        self.assertEqual(self.resolve("abc123.inanhxink.com"), "abc123")
        self.assertEqual(self.resolve("ABC123.inanhxink.com:8443"), "abc123")
        self.assertEqual(self.resolve("deep.abc.inanhxink.com"), "deep")

    def test_reserved_bare_and_foreign_hosts(self):
        for host in ("order.inanhxink.com", "www.inanhxink.com", "inanhxink.com", "evil.com",
                     "abc.inanhxink.com.evil.com", "localhost"):
            with self.subTest(host=host):
                self.assertIsNone(self.resolve(host))


class QueryParamResolverTests(SimpleTestCase):
    def setUp(self):
        self.rf = RequestFactory()
        self.resolver = QueryParamResolver()

    def test_query_params(self):
        self.assertEqual(self.resolver.resolve(self.rf.get("/", {"preview": "ABC"})), "abc")
        self.assertEqual(self.resolver.resolve(self.rf.get("/", {"sub": "xyz"})), "xyz")
        self.assertIsNone(self.resolver.resolve(self.rf.get("/")))

    def test_asset_request_falls_back_to_referer(self):
        request = self.rf.get("/app.js", HTTP_REFERER="http://localhost:8000/?preview=abc123&x=1")
        self.assertEqual(self.resolver.resolve(request), "abc123")
        request = self.rf.get("/app.js", HTTP_REFERER="http://localhost:8000/about")
        self.assertIsNone(self.resolver.resolve(request))


class GetResolverTests(SimpleTestCase):
    @override_settings(SITE_RESOLVER="query")
    def test_query(self):
        self.assertIsInstance(get_resolver(), QueryParamResolver)

    @override_settings(SITE_RESOLVER="host", BASE_DOMAIN="example.test")
    def test_host(self):
        resolver = get_resolver()
        self.assertIsInstance(resolver, HostHeaderResolver)
        self.assertEqual(resolver.base_domain, "example.test")

    @override_settings(SITE_RESOLVER="dns-magic")
    def test_unknown_strategy(self):
        with self.assertRaises(ImproperlyConfigured):
            get_resolver()
