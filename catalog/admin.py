from django.contrib import admin, messages

from .models import Template


@admin.register(Template)
class TemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "template_type", "price", "is_active", "updated_at")
    list_filter = ("template_type", "is_active")
    search_fields = ("name", "slug", "description")
    actions = ("activate", "deactivate")

    @admin.action(description="Activate selected templates")
    def activate(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f"{count} template(s) activated.", messages.SUCCESS)

    @admin.action(description="Deactivate selected templates (no longer orderable)")
    def deactivate(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f"{count} template(s) deactivated.", messages.WARNING)
