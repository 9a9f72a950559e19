"""
orders.names
Site name (subdomain label) normalization and validation.
"""
import re

from django.conf import settings

from giftsite import errors

SITE_NAME_RE = re.compile(r"^[a-z0-9_-]+$")
MAX_SITE_NAME_LENGTH = 63  # DNS label limit


def reserved_names():
    return {n.strip().lower() for n in getattr(settings, "RESERVED_SITE_NAMES", ["order", "www"]) if n}


def normalize_site_name(raw) -> str:
    """
    Lowercase and validate a requested site name.
    Raises errors.ValidationError when the name can't be used as a subdomain.
    """
    if raw is None or not str(raw).strip():
        raise errors.ValidationError("QR name is required")
    name = str(raw).lower()
    if not SITE_NAME_RE.fullmatch(name):
        raise errors.ValidationError(
            "QR name must be lowercase letters, numbers, dashes, or underscores only"
        )
    if len(name) > MAX_SITE_NAME_LENGTH:
        raise errors.ValidationError(f"QR name must be at most {MAX_SITE_NAME_LENGTH} characters")
    if name in reserved_names():
        raise errors.ValidationError(f"'{name}' is reserved, please pick another name")
    return name


def site_url(name: str) -> str:
    return f"{name}.{settings.BASE_DOMAIN}"
