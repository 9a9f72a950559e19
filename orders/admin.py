from django.contrib import admin

from .models import Order, Site, Voucher


class OrderInline(admin.TabularInline):
    model = Order
    extra = 0
    fields = ("id", "status", "total_amount", "voucher_code", "created_at")
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ("name", "full_url", "template_type", "template", "updated_at")
    list_filter = ("template_type",)
    search_fields = ("name", "content")
    readonly_fields = ("full_url", "created_at", "updated_at")
    inlines = (OrderInline,)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "qr_name", "template", "customer_email", "total_amount", "voucher_code", "status", "created_at")
    list_filter = ("status", "template", "music_added", "keychain_purchased")
    search_fields = ("qr_name", "customer_name", "customer_email", "customer_phone", "voucher_code")
    raw_id_fields = ("site", "voucher")
    # Money fields are computed at checkout; status moves only through payments.
    readonly_fields = (
        "subtotal", "total_amount", "voucher_discount", "music_price", "keychain_price",
        "status", "created_at", "updated_at",
    )
    date_hierarchy = "created_at"


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = ("code", "discount_type", "discount_value", "used_count", "max_uses", "expires_at", "is_active")
    list_filter = ("discount_type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("used_count", "created_at")
