import logging

from django.shortcuts import render
from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from orders.models import Site
from orders.site_config import read_site_config

from .resolvers import get_resolver

logger = logging.getLogger(__name__)


def render_not_found(request, site_id=None):
    return render(request, "delivery/not_found.html", {"site_id": site_id}, status=404)


def render_server_error(request):
    return render(request, "delivery/error.html", status=500)


class SiteDataView(APIView):
    """
    GET /api/site-data
    Same resolution as the page dispatch; for bundles that fetch instead of
    reading the injected payload.
    """
    def get(self, request, *args, **kwargs):
        site_id = get_resolver().resolve(request)
        if not site_id:
            raise errors.ValidationError("No site identifier in request")

        site = Site.objects.filter(name=site_id).first()
        if site is None:
            raise errors.NotFoundError("Site not found")

        return Response({
            "success": True,
            "template_type": site.template_type,
            "template_data": read_site_config(site.config, site.name),
        })


def page_not_found(request, exception=None):
    return render_not_found(request)


def server_error(request):
    return render_server_error(request)
