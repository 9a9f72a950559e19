"""
orders.site_config

The per-site JSON blob handed to a template bundle. Each template type has
its own schema (a DRF serializer). Writes are validated against it; reads are
permissive, bundles fill in defaults for anything absent.

Keys are camelCase because the blob goes straight into browser code.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from rest_framework import serializers

from catalog.models import TemplateType
from giftsite import errors

logger = logging.getLogger(__name__)

MAX_IMAGES = 20


class BaseSiteConfigSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    imageUrls = serializers.ListField(
        child=serializers.CharField(max_length=1000), required=False, max_length=MAX_IMAGES
    )
    musicUrl = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class GalaxyConfigSerializer(BaseSiteConfigSerializer):
    heartText = serializers.CharField(required=False, allow_blank=True, max_length=40)
    textLines = serializers.ListField(child=serializers.CharField(max_length=120), required=False, max_length=20)
    colorScheme = serializers.DictField(child=serializers.CharField(max_length=32), required=False)


class LetterConfigSerializer(BaseSiteConfigSerializer):
    title = serializers.CharField(required=False, allow_blank=True, max_length=120)
    sender = serializers.CharField(required=False, allow_blank=True, max_length=120)
    receiver = serializers.CharField(required=False, allow_blank=True, max_length=120)


class ChristmasConfigSerializer(LetterConfigSerializer):
    pass


CONFIG_SERIALIZERS = {
    TemplateType.GALAXY.value: GalaxyConfigSerializer,
    TemplateType.LOVELETTER.value: LetterConfigSerializer,
    TemplateType.CHRISTMAS.value: ChristmasConfigSerializer,
}


def build_site_config(template_type: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate the submitted fields for `template_type` and return the blob to
    store. Only fields the customer actually sent are kept; `content` is
    always present.
    """
    serializer_cls = CONFIG_SERIALIZERS.get(template_type)
    if serializer_cls is None:
        raise errors.ValidationError(f"Unknown template type '{template_type}'")

    data = {name: payload[name] for name in serializer_cls().fields if payload.get(name) is not None}
    if not data.get("musicUrl") and payload.get("musicLink"):
        data["musicUrl"] = payload["musicLink"]  # legacy field
    data.setdefault("content", "")

    serializer = serializer_cls(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError(errors.first_error_message(serializer.errors))

    config: Dict[str, Any] = {}
    for name in serializer.fields:
        if name not in serializer.validated_data:
            continue
        value = serializer.validated_data[name]
        if name == "imageUrls" and not value:
            continue
        if name == "musicUrl" and not value:
            continue
        config[name] = value
    return config


def read_site_config(raw: Any, site_name: str = "") -> Dict[str, Any]:
    """Stored blob as a dict; anything that isn't a JSON object reads as {}."""
    if isinstance(raw, dict):
        return raw
    if raw not in (None, "", {}):
        logger.warning("Site %s has a non-object config (%s); rendering with defaults", site_name, type(raw).__name__)
    return {}
