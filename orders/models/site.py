"""
orders.models.site
The delivered gift page, reachable at <name>.<BASE_DOMAIN>.
"""
from django.db import models

from catalog.models import TimeStampedModel, TemplateType


class Site(TimeStampedModel):
    name = models.CharField(max_length=63, unique=True, help_text="Subdomain label, lowercase.")
    full_url = models.CharField(max_length=255)
    content = models.TextField(blank=True, default="")
    template = models.ForeignKey("catalog.Template", on_delete=models.PROTECT, related_name="sites")
    template_type = models.CharField(max_length=20, choices=TemplateType.choices)
    config = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ("-updated_at",)

    def __str__(self) -> str:
        return self.full_url or self.name
