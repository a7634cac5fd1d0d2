"""
Purpose: Core data models for the tenants domain.
What it does:
Defines the structure of a Tenant (a merchant listed in a market) and the
delivery settings the dispatch engine reads from it, without relying on any
storage layer.

Rule: Read-only for the engine. Nothing in dispatch mutates a Tenant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from orders.models import parse_minutes

logger = logging.getLogger(__name__)


class TenantType(str, Enum):
    """
    Decides which time-window rules apply to a tenant's orders.
    RESTAURANT orders depend on readiness; SHOP/SERVICE are pickable on demand.
    """
    RESTAURANT = "RESTAURANT"
    SHOP = "SHOP"
    SERVICE = "SERVICE"


class DeliveryProviderMode(str, Enum):
    TENANT = "TENANT"
    MARKET = "MARKET"
    PICKUP_ONLY = "PICKUP_ONLY"


@dataclass(frozen=True)
class Tenant:
    """
    A merchant at a specific point in time, as seen by the dispatch engine.
    """
    id: str
    tenant_type: TenantType = TenantType.SHOP
    market_id: Optional[str] = None

    # Opt-in for the TENANT -> MARKET courier fallback.
    allow_market_courier_fallback: bool = False

    delivery_provider_mode: DeliveryProviderMode = DeliveryProviderMode.TENANT
    default_prep_time_min: Optional[float] = None

    # Storefront fields (branding, slug, ...) carried through untouched.
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def new(
        cls,
        tenant_id: str,
        tenant_type: str | TenantType = TenantType.SHOP,
        market_id: Optional[str] = None,
        allow_market_courier_fallback: bool = False,
        delivery_provider_mode: str | DeliveryProviderMode = DeliveryProviderMode.TENANT,
        default_prep_time_min: Optional[float] = None,
    ) -> Tenant:
        if isinstance(tenant_type, str):
            tenant_type = TenantType(tenant_type)
        if isinstance(delivery_provider_mode, str):
            delivery_provider_mode = DeliveryProviderMode(delivery_provider_mode)

        return cls(
            id=tenant_id,
            tenant_type=tenant_type,
            market_id=market_id,
            allow_market_courier_fallback=allow_market_courier_fallback,
            delivery_provider_mode=delivery_provider_mode,
            default_prep_time_min=default_prep_time_min,
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Tenant:
        """
        Normalize a stored tenant record (camelCase registry shape).

        tenantType falls back to the legacy storefront `type`:
        FOOD -> RESTAURANT, anything else -> SHOP.
        """
        known = {
            "id", "tenantType", "marketId", "allowMarketCourierFallback",
            "deliveryProviderMode", "defaultPrepTimeMin",
        }
        raw_type = record.get("tenantType")
        if raw_type is None:
            raw_type = "RESTAURANT" if record.get("type") == "FOOD" else "SHOP"

        try:
            tenant_type = TenantType(raw_type)
        except ValueError:
            logger.warning("Tenant %s has unknown tenantType %r, treating as SHOP", record.get("id"), raw_type)
            tenant_type = TenantType.SHOP

        raw_mode = record.get("deliveryProviderMode") or "TENANT"
        try:
            provider_mode = DeliveryProviderMode(raw_mode)
        except ValueError:
            raise ValueError(
                f"Tenant {record.get('id')!r}: {raw_mode!r} is not a valid DeliveryProviderMode"
            ) from None

        return cls(
            id=str(record["id"]),
            tenant_type=tenant_type,
            market_id=record.get("marketId"),
            allow_market_courier_fallback=bool(record.get("allowMarketCourierFallback", False)),
            delivery_provider_mode=provider_mode,
            default_prep_time_min=parse_minutes(record.get("defaultPrepTimeMin"), record.get("id")),
            extras={k: v for k, v in record.items() if k not in known},
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = dict(self.extras)
        record.update({
            "id": self.id,
            "tenantType": self.tenant_type.value,
            "allowMarketCourierFallback": self.allow_market_courier_fallback,
            "deliveryProviderMode": self.delivery_provider_mode.value,
        })
        if self.market_id is not None:
            record["marketId"] = self.market_id
        if self.default_prep_time_min is not None:
            record["defaultPrepTimeMin"] = self.default_prep_time_min
        return record


def find_tenant(tenants: Iterable[Tenant], tenant_id: Optional[str]) -> Optional[Tenant]:
    if not tenant_id:
        return None
    return next((tenant for tenant in tenants if tenant.id == tenant_id), None)


def resolve_tenant_type(tenants: Iterable[Tenant], tenant_id: Optional[str]) -> TenantType:
    """
    Tenant type of the order's owner. Unresolved tenants count as SHOP.
    """
    tenant = find_tenant(tenants, tenant_id)
    return tenant.tenant_type if tenant else TenantType.SHOP


def tenants_in_market(tenants: Iterable[Tenant], market_id: str) -> List[Tenant]:
    return [tenant for tenant in tenants if tenant.market_id == market_id]
