from rest_framework import serializers

from .models import Template


class TemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Template
        fields = (
            "id", "slug", "name", "description", "image_url",
            "price", "template_type", "is_active",
        )
