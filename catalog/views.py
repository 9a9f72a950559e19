import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from .models import Template
from .serializers import TemplateSerializer

logger = logging.getLogger(__name__)


class TemplateListView(APIView):
    """
    GET /api/templates
    Active templates only, in catalog order.
    """
    def get(self, request, *args, **kwargs):
        templates = Template.objects.active()
        return Response(
            {"success": True, "templates": TemplateSerializer(templates, many=True).data},
            status=status.HTTP_200_OK,
        )


class TemplateDetailView(APIView):
    """
    GET /api/templates/<id or slug>
    """
    def get(self, request, key, *args, **kwargs):
        template = Template.objects.by_key(key).first()
        if template is None:
            raise errors.NotFoundError("Template not found")
        return Response({"success": True, "template": TemplateSerializer(template).data})
