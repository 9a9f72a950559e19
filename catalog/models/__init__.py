"""
Django imports this package as `catalog.models`.
"""
from .base import TimeStampedModel, ActivatableModel  # abstract
from .template import Template, TemplateType, TEMPLATE_TYPE_MAP

__all__ = [
    "TimeStampedModel",
    "ActivatableModel",
    "Template",
    "TemplateType",
    "TEMPLATE_TYPE_MAP",
]
