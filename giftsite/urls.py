"""
giftsite URL configuration.

API lives under /api/. Requests on <name>.<BASE_DOMAIN> never reach this
URLconf for non-API paths: delivery.middleware.SiteDispatchMiddleware answers
them from the site's template bundle first.
"""

from django.contrib import admin
from django.urls import include, path

from giftsite.views import health_view, test_db_view

urlpatterns = [
    path("api/health", health_view, name="health"),
    path("api/test-db", test_db_view, name="test-db"),

    path("api/", include("catalog.urls")),
    path("api/", include("orders.urls")),
    path("api/", include("delivery.urls")),
    path("api/payment/", include("payments.urls")),

    path("admin/", admin.site.urls),
]

handler404 = "delivery.views.page_not_found"
handler500 = "delivery.views.server_error"
