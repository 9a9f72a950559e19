"""
Order endpoints used by the storefront order form.

POST /api/orders/check-qr-name   name availability (read-only)
POST /api/orders/quote           live price preview
POST /api/orders                 create order + site
GET  /api/orders/<id>            order detail
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from orders import services
from orders.serializers import OrderSerializer

logger = logging.getLogger(__name__)


class CheckQrNameView(APIView):
    def post(self, request, *args, **kwargs):
        result = services.check_name_availability(request.data.get("qrName"))
        if result.available:
            return Response({
                "success": True,
                "available": True,
                "message": "This name is available",
                "fullUrl": result.full_url,
            })
        return Response({
            "success": True,
            "available": False,
            "message": "This name is already taken",
        })


class OrderQuoteView(APIView):
    def post(self, request, *args, **kwargs):
        totals = services.quote(request.data)
        return Response({
            "success": True,
            "subtotal": totals.subtotal,
            "total": totals.total,
            "discount": totals.discount,
        })


class OrderCreateView(APIView):
    def post(self, request, *args, **kwargs):
        result = services.create_order(request.data)
        site = result.site
        return Response(
            {
                "success": True,
                "order": OrderSerializer(result.order).data,
                "qrCode": {
                    "id": site.id,
                    "qrName": site.name,
                    "fullUrl": site.full_url,
                    "templateType": site.template_type,
                },
            },
            status=status.HTTP_201_CREATED,
        )


class OrderDetailView(APIView):
    def get(self, request, order_id, *args, **kwargs):
        order = services.get_order(order_id)
        return Response({"success": True, "order": OrderSerializer(order).data})
