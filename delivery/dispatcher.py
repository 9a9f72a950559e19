"""
delivery.dispatcher

Serves a stored Site from its template bundle:

  1. site lookup by name        -> 404 page when missing
  2. non-root path              -> static file from the bundle, if it exists
  3. everything else            -> bundle index.html with the site payload
                                   injected before </head>

Bundles live in SITE_TEMPLATES_DIR/<template_type>/ and are plain static
sites; they read window.sitePayload (or the window.siteData alias) and fall
back to their own defaults for anything missing.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import re
from pathlib import Path
from typing import Any, Optional

from django.conf import settings
from django.db import DatabaseError
from django.http import FileResponse, HttpResponse

from orders.models import Site
from orders.site_config import read_site_config

from .views import render_not_found, render_server_error

logger = logging.getLogger(__name__)

HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
INDEX = "index.html"

_SCRIPT_ESCAPES = {
    ord("<"): "\\u003C",
    ord(">"): "\\u003E",
    ord("&"): "\\u0026",
    0x2028: "\\u2028",
    0x2029: "\\u2029",
}


def script_json(value: Any) -> str:
    """JSON safe to place inside an inline <script> block."""
    return json.dumps(value, ensure_ascii=False).translate(_SCRIPT_ESCAPES)


def build_injection(site_id: str, template_type: str, config: dict) -> str:
    payload = {"template": template_type, "data": config}
    return (
        "<script>"
        f"window.siteId={script_json(site_id)};"
        f"window.sitePayload={script_json(payload)};"
        "window.siteData=window.sitePayload.data;"
        "</script>"
    )


def inject(html: str, snippet: str) -> str:
    """Insert snippet right before the first </head>, or at the very top."""
    match = HEAD_CLOSE_RE.search(html)
    if match is None:
        return snippet + html
    return html[:match.start()] + snippet + html[match.start():]


def bundle_dir(template_type: str) -> Path:
    return Path(settings.SITE_TEMPLATES_DIR) / template_type


def find_asset(template_type: str, path: str) -> Optional[Path]:
    """Resolve a request path inside the bundle; None if absent or outside it."""
    relative = path.lstrip("/")
    if not relative:
        return None
    root = bundle_dir(template_type).resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        logger.warning("Refused asset path outside bundle: %s", path)
        return None
    if candidate.parent == root and candidate.name.lower() == INDEX:
        # the index is only ever served with the site payload injected
        return None
    if not candidate.is_file():
        return None
    return candidate


def serve_asset(asset: Path) -> FileResponse:
    content_type, _ = mimetypes.guess_type(asset.name)
    return FileResponse(open(asset, "rb"), content_type=content_type or "application/octet-stream")


def render_site(request, site: Site) -> HttpResponse:
    index = bundle_dir(site.template_type) / INDEX
    try:
        html = index.read_text(encoding="utf-8")
    except OSError:
        logger.exception("Template bundle %s unreadable for site %s", site.template_type, site.name)
        return render_server_error(request)

    config = read_site_config(site.config, site.name)
    snippet = build_injection(site.name, site.template_type, config)
    return HttpResponse(inject(html, snippet), content_type="text/html; charset=utf-8")


def dispatch(request, site_id: str) -> HttpResponse:
    try:
        site = Site.objects.filter(name=site_id).first()
    except DatabaseError:
        logger.exception("Site lookup failed for %s", site_id)
        return render_server_error(request)

    if site is None:
        return render_not_found(request, site_id)

    if request.path not in ("", "/"):
        asset = find_asset(site.template_type, request.path)
        if asset is not None:
            return serve_asset(asset)

    return render_site(request, site)
