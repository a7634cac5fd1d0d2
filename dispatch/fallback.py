"""
Purpose: Time-based fallback of delivery responsibility (TENANT -> MARKET).
What it does:
- Scans the orders of one market's tenants.
- For tenants that opted in (allow_market_courier_fallback), flips an order to
  MARKET once its elapsed time and preparation state call for it:
    RESTAURANT  READY                      and elapsed >= fallback_restaurant_ready_minutes
    RESTAURANT  near ready (not READY yet) and elapsed >= fallback_restaurant_near_ready_minutes
    SHOP/SERVICE                               elapsed >= fallback_shop_service_minutes
- Writes the order collection back only when something flipped.

Rule: At most one transition per order. fallback_triggered_at is the guard.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from orders.models import (
    DeliveryAssignmentMode,
    FulfillmentType,
    Order,
    OrderStatus,
    minutes_between,
    parse_timestamp,
    utc_now,
)
from tenants.models import Tenant, TenantType, find_tenant, tenants_in_market
from storage.base import OrdersRepo, TenantsRepo
from .eligibility import is_near_ready
from .policy import DispatchPolicy, default_policy
from .state_machines.order_state import promote_to_market

logger = logging.getLogger(__name__)


def fallback_reason(order: Order, tenant: Tenant, now: datetime, policy: DispatchPolicy) -> Optional[str]:
    """
    Why this order should fall back now ('ready', 'near_ready', 'elapsed'),
    or None when it should stay with the merchant.
    """
    created_at = order.created_at or now
    elapsed_min = minutes_between(created_at, now)

    if tenant.tenant_type == TenantType.RESTAURANT:
        is_ready = order.status == OrderStatus.READY
        if is_ready and elapsed_min >= policy.fallback_restaurant_ready_minutes:
            return "ready"
        if not is_ready and is_near_ready(order, now, policy) and elapsed_min >= policy.fallback_restaurant_near_ready_minutes:
            return "near_ready"
        return None

    if elapsed_min >= policy.fallback_shop_service_minutes:
        return "elapsed"
    return None


def apply_fallback(
    orders: Iterable[Order],
    tenants: Iterable[Tenant],
    *,
    policy: Optional[DispatchPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Order]:
    """
    Pure core of the evaluator: mutates the given orders in place and returns
    the ones that flipped. `tenants` is the market's roster; orders belonging
    to anyone else are left alone.
    """
    policy = policy or default_policy()
    now = parse_timestamp(now) or utc_now()
    tenants = list(tenants)
    tenant_ids = {tenant.id for tenant in tenants}

    triggered: List[Order] = []
    for order in orders:
        if not order.tenant_id or order.tenant_id not in tenant_ids:
            continue
        if order.delivery_assignment_mode == DeliveryAssignmentMode.MARKET or order.fallback_triggered_at is not None:
            continue
        if order.fulfillment_type == FulfillmentType.PICKUP:
            continue

        tenant = find_tenant(tenants, order.tenant_id)
        if tenant is None or not tenant.allow_market_courier_fallback:
            continue

        reason = fallback_reason(order, tenant, now, policy)
        if reason and promote_to_market(order, now):
            logger.debug(
                "Fallback %s: order %s (%s) handed to market",
                reason, order.id, tenant.tenant_type.value,
            )
            triggered.append(order)

    return triggered


def evaluate_fallback(
    market_id: str,
    orders_repo: OrdersRepo,
    tenants_repo: TenantsRepo,
    *,
    policy: Optional[DispatchPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Order]:
    """
    Load, evaluate, and write back (only if at least one order changed).
    Storage errors propagate to the caller.
    """
    tenants = tenants_in_market(tenants_repo.find_all(), market_id)
    orders = orders_repo.find_all()

    triggered = apply_fallback(orders, tenants, policy=policy, now=now)
    if triggered:
        orders_repo.set_all(orders)
        logger.info("Market %s: %d order(s) fell back to market couriers", market_id, len(triggered))

    return triggered
