"""
delivery.resolvers

Which site does a request belong to? One interface, two strategies, picked
by settings.SITE_RESOLVER:

    host   "abc123.inanhxink.com"             -> "abc123"
    query  "localhost:8000/?preview=abc123"   -> "abc123"
           (asset requests: the same param read from the Referer URL)
"""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import parse_qs, urlsplit

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class SubdomainResolver:
    def resolve(self, request) -> Optional[str]:
        raise NotImplementedError


class HostHeaderResolver(SubdomainResolver):
    def __init__(self, base_domain: str, reserved: Iterable[str] = ("order", "www")):
        self.base_domain = base_domain.strip().lower().lstrip(".")
        self.reserved = {r.strip().lower() for r in reserved if r}

    def resolve(self, request) -> Optional[str]:
        host = request.get_host().split(":", 1)[0].lower().rstrip(".")
        suffix = "." + self.base_domain
        if not host.endswith(suffix):
            return None
        label = host[: -len(suffix)].split(".")[0]
        if not label or label in self.reserved:
            return None
        return label


class QueryParamResolver(SubdomainResolver):
    def __init__(self, params: Iterable[str] = ("preview", "sub")):
        self.params = tuple(params)

    def _from_query(self, query) -> Optional[str]:
        for param in self.params:
            values = query.get(param)
            if isinstance(values, list):
                values = values[0] if values else None
            if values and values.strip():
                return values.strip().lower()
        return None

    def resolve(self, request) -> Optional[str]:
        found = self._from_query(request.GET)
        if found:
            return found
        referer = request.META.get("HTTP_REFERER") or ""
        if not referer:
            return None
        return self._from_query(parse_qs(urlsplit(referer).query))


def get_resolver() -> SubdomainResolver:
    strategy = getattr(settings, "SITE_RESOLVER", "host")
    if strategy == "host":
        return HostHeaderResolver(settings.BASE_DOMAIN, settings.RESERVED_SITE_NAMES)
    if strategy == "query":
        return QueryParamResolver()
    raise ImproperlyConfigured(f"SITE_RESOLVER must be 'host' or 'query', got {strategy!r}")
