from rest_framework import serializers

from .models import Order, Site


class OrderSerializer(serializers.ModelSerializer):
    template_name = serializers.CharField(source="template.name", read_only=True)
    template_image = serializers.CharField(source="template.image_url", read_only=True)
    site_url = serializers.CharField(source="site.full_url", read_only=True)

    class Meta:
        model = Order
        fields = (
            "id", "site", "site_url", "template", "template_name", "template_image",
            "customer_name", "customer_email", "customer_phone",
            "qr_name", "content", "config", "music_url",
            "music_added", "keychain_purchased", "music_price", "keychain_price",
            "tip_amount", "voucher_code", "voucher_discount",
            "subtotal", "total_amount", "status",
            "created_at", "updated_at",
        )


class SiteSummarySerializer(serializers.ModelSerializer):
    """Shape returned by GET /api/qrcodes/<name> (camelCase for the storefront)."""
    qrName = serializers.CharField(source="name")
    fullUrl = serializers.CharField(source="full_url")
    templateType = serializers.CharField(source="template_type")
    contentLines = serializers.SerializerMethodField()
    template = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = Site
        fields = ("id", "qrName", "fullUrl", "content", "contentLines", "templateType", "template", "createdAt")

    def get_contentLines(self, obj):
        return [line for line in (obj.content or "").split("\n") if line.strip()]

    def get_template(self, obj):
        t = obj.template
        return {
            "id": t.id,
            "name": t.name,
            "description": t.description,
            "imageUrl": t.image_url,
            "price": t.price,
        }


class VoucherValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=40, error_messages={"required": "Voucher code is required", "blank": "Voucher code is required"})
