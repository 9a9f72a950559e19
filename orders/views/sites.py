from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from orders.models import Site
from orders.serializers import SiteSummarySerializer


class SiteDetailView(APIView):
    """GET /api/qrcodes/<name>"""
    def get(self, request, name, *args, **kwargs):
        site = Site.objects.select_related("template").filter(name=str(name).lower()).first()
        if site is None:
            raise errors.NotFoundError("QR code not found")
        return Response({"success": True, "qrCode": SiteSummarySerializer(site).data})
