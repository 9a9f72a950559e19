"""
orders.services

Order repository: the persistence boundary for site names, sites, orders
and voucher usage.

create_order() runs voucher claim + site upsert + order insert in ONE
transaction. If anything fails, the voucher increment rolls back with the
rest, so a voucher is never counted for an order that doesn't exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from catalog.models import Template, TemplateType, TEMPLATE_TYPE_MAP
from giftsite import errors

from .models import Order, OrderStatus, Site, Voucher
from .names import normalize_site_name, site_url
from .pricing import Totals, compute_total, to_amount
from .site_config import build_site_config

logger = logging.getLogger(__name__)

SITE_UPSERT_FIELDS = ["full_url", "content", "template", "template_type", "config", "updated_at"]
# PositiveIntegerField ceiling shared by every money column on Order
MAX_ORDER_AMOUNT = 2_147_483_647


@dataclass(frozen=True)
class NameAvailability:
    name: str
    available: bool
    full_url: str


@dataclass(frozen=True)
class OrderResult:
    order: Order
    site: Site


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def check_name_availability(raw_name: Any) -> NameAvailability:
    """Read-only: validates the name and reports whether a site already holds it."""
    name = normalize_site_name(raw_name)
    taken = Site.objects.filter(name=name).exists()
    return NameAvailability(name=name, available=not taken, full_url=site_url(name))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def resolve_template_type(explicit: Any, template_id: Any) -> Optional[str]:
    """Explicit known type wins, then the static id -> type table."""
    if explicit and str(explicit).lower() in TemplateType.values:
        return str(explicit).lower()
    return TEMPLATE_TYPE_MAP.get(str(template_id).strip().lower())


def get_orderable_template(template_id: Any) -> Template:
    template = Template.objects.active().by_key(template_id).first()
    if template is None:
        raise errors.NotFoundError("Template not found")
    return template


# ---------------------------------------------------------------------------
# Vouchers
# ---------------------------------------------------------------------------

def find_applicable_voucher(code: Any) -> Optional[Voucher]:
    code = str(code or "").strip().upper()
    if not code:
        return None
    return Voucher.objects.applicable().filter(code=code).first()


def claim_voucher(code: Any) -> Optional[Voucher]:
    """
    Count one use of the voucher, or return None when it can't be applied.
    Must run inside the order transaction. The increment is a conditional
    UPDATE, so concurrent orders can never push used_count past max_uses.
    """
    voucher = find_applicable_voucher(code)
    if voucher is None:
        if code:
            logger.info("Voucher %r not applicable; order continues at full price", code)
        return None

    now = timezone.now()
    claimed = Voucher.objects.applicable(now).filter(pk=voucher.pk).update(used_count=F("used_count") + 1)
    if not claimed:
        logger.info("Voucher %s exhausted by a concurrent order", voucher.code)
        return None
    voucher.refresh_from_db(fields=["used_count"])
    return voucher


# ---------------------------------------------------------------------------
# Sites
# ---------------------------------------------------------------------------

def upsert_site(*, name: str, content: str, template: Template, template_type: str, config: dict) -> Site:
    """
    INSERT ... ON CONFLICT (name) DO UPDATE as a single statement; re-ordering
    an existing name overwrites its content/template/config.
    """
    Site.objects.bulk_create(
        [
            Site(
                name=name,
                full_url=site_url(name),
                content=content,
                template=template,
                template_type=template_type,
                config=config,
            )
        ],
        update_conflicts=True,
        unique_fields=["name"],
        update_fields=SITE_UPSERT_FIELDS,
    )
    return Site.objects.get(name=name)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def quote(payload: Mapping[str, Any]) -> Totals:
    """Price preview; never claims the voucher."""
    template = get_orderable_template(payload.get("templateId"))
    voucher = find_applicable_voucher(payload.get("voucherCode"))
    return compute_total(template.price, _addon_prices(payload), payload.get("tipAmount"), voucher)


def _addon_prices(payload: Mapping[str, Any]) -> list:
    music = settings.MUSIC_PRICE if payload.get("musicAdded") else 0
    keychain = settings.KEYCHAIN_PRICE if payload.get("keychainPurchased") else 0
    return [music, keychain]


def _optional_text(value: Any) -> Optional[str]:
    value = str(value).strip() if value is not None else ""
    return value or None


def create_order(payload: Mapping[str, Any]) -> OrderResult:
    """
    payload keys (camelCase, as posted by the order form):
      qrName, templateId (required), templateType, content, imageUrls, musicUrl,
      musicLink, musicAdded, keychainPurchased, tipAmount, voucherCode,
      customerName, customerEmail, customerPhone + per-template config fields.
    """
    if not payload.get("qrName") or not payload.get("templateId"):
        raise errors.ValidationError("qrName and templateId are required")

    name = normalize_site_name(payload["qrName"])
    template_id = payload["templateId"]

    template_type = resolve_template_type(payload.get("templateType"), template_id)
    template = get_orderable_template(template_id)
    template_type = str(template_type or template.template_type)
    if template_type not in TemplateType.values:
        raise errors.ValidationError(
            f"Unknown template type. Supported: {', '.join(TemplateType.values)}"
        )

    content = str(payload.get("content") or "")
    config = build_site_config(template_type, payload)
    music, keychain = _addon_prices(payload)
    tip = int(to_amount(payload.get("tipAmount")))
    if compute_total(template.price, [music, keychain], tip).subtotal > MAX_ORDER_AMOUNT:
        raise errors.ValidationError("Order amount is too large")
    voucher_code = _optional_text(payload.get("voucherCode"))

    try:
        with transaction.atomic():
            voucher = claim_voucher(voucher_code)
            totals = compute_total(template.price, [music, keychain], tip, voucher)

            site = upsert_site(
                name=name,
                content=content,
                template=template,
                template_type=template_type,
                config=config,
            )
            order = Order.objects.create(
                site=site,
                template=template,
                customer_name=_optional_text(payload.get("customerName")),
                customer_email=_optional_text(payload.get("customerEmail")),
                customer_phone=_optional_text(payload.get("customerPhone")),
                qr_name=name,
                content=content,
                config=config,
                music_url=config.get("musicUrl") or None,
                music_added=bool(payload.get("musicAdded")),
                keychain_purchased=bool(payload.get("keychainPurchased")),
                music_price=music,
                keychain_price=keychain,
                tip_amount=tip,
                voucher=voucher,
                voucher_code=voucher_code.upper() if voucher_code else None,
                voucher_discount=totals.discount,
                subtotal=totals.subtotal,
                total_amount=totals.total,
                status=OrderStatus.PAID if totals.total == 0 else OrderStatus.PENDING,
            )
    except IntegrityError as exc:
        logger.warning("Site name conflict for %s: %s", name, exc)
        raise errors.ConflictError(site=name) from exc
    except DatabaseError as exc:
        logger.exception("Order transaction failed for site %s (voucher=%s)", name, voucher_code)
        raise errors.TransactionError(site=name) from exc

    logger.info(
        "Order %s created for site %s: subtotal=%s total=%s voucher=%s",
        order.pk, site.name, order.subtotal, order.total_amount, order.voucher_code,
    )
    return OrderResult(order=order, site=site)


def get_order(order_id: Any) -> Order:
    try:
        pk = int(str(order_id))
    except (TypeError, ValueError):
        raise errors.NotFoundError("Order not found")
    order = Order.objects.select_related("template", "site").filter(pk=pk).first()
    if order is None:
        raise errors.NotFoundError("Order not found")
    return order
