"""
catalog.models.template
A purchasable gift template. Prices are whole VND.
"""
from django.db import models

from .base import TimeStampedModel, ActivatableModel


class TemplateType(models.TextChoices):
    GALAXY = "galaxy", "Galaxy"
    CHRISTMAS = "christmas", "Christmas"
    LOVELETTER = "loveletter", "Love letter"


# Storefront template ids whose rendering experience is known without a lookup.
TEMPLATE_TYPE_MAP = {
    "letterinspace": TemplateType.GALAXY.value,
    "christmastree": TemplateType.CHRISTMAS.value,
    "loveletter": TemplateType.LOVELETTER.value,
}


class TemplateQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def by_key(self, key):
        """Match a template by numeric id or by slug."""
        key = str(key).strip()
        if key.isdigit():
            return self.filter(pk=int(key))
        return self.filter(slug=key.lower())


class Template(TimeStampedModel, ActivatableModel):
    slug = models.SlugField(max_length=64, unique=True)
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    price = models.PositiveIntegerField(help_text="Whole VND.")
    template_type = models.CharField(max_length=20, choices=TemplateType.choices)

    objects = TemplateQuerySet.as_manager()

    class Meta:
        ordering = ("id",)

    def __str__(self) -> str:
        return f"{self.name} ({self.template_type})"
