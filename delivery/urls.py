from django.urls import path

from .views import SiteDataView

urlpatterns = [
    path("site-data", SiteDataView.as_view(), name="site-data"),
]
