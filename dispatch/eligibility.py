#Purpose: Market dispatch eligibility (rule gate for a single order).
#Decides whether an order may sit in the market dispatch queue right now:
#only MARKET-assigned delivery orders that are not yet out / closed
#RESTAURANT: READY, or ready_at inside the near-ready window (overdue counts)
#SHOP / SERVICE: NEW, PREPARING or READY, no readiness time needed
#Output: a bool. No side effects, deterministic given `now`.

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from orders.models import (
    DeliveryAssignmentMode,
    FulfillmentType,
    IN_FLIGHT_OR_CLOSED,
    Order,
    OrderStatus,
    minutes_between,
    parse_timestamp,
    utc_now,
)
from tenants.models import Tenant, TenantType, resolve_tenant_type
from .policy import DispatchPolicy, default_policy

PICKABLE_ON_DEMAND = frozenset({OrderStatus.NEW, OrderStatus.PREPARING, OrderStatus.READY})


def is_near_ready(order: Order, now: datetime, policy: DispatchPolicy) -> bool:
    """
    ready_at is within the near-ready window (or already passed).
    Orders without ready_at are never near ready.
    """
    if order.ready_at is None:
        return False
    return minutes_between(now, order.ready_at) <= policy.near_ready_window_minutes


def is_eligible_for_market_dispatch(
    order: Order,
    tenants: Iterable[Tenant],
    *,
    policy: Optional[DispatchPolicy] = None,
    now: Optional[datetime] = None,
) -> bool:
    policy = policy or default_policy()

    if order.delivery_assignment_mode != DeliveryAssignmentMode.MARKET:
        return False
    if order.fulfillment_type == FulfillmentType.PICKUP:
        return False
    if order.status in IN_FLIGHT_OR_CLOSED:
        return False

    if resolve_tenant_type(tenants, order.tenant_id) == TenantType.RESTAURANT:
        if order.status == OrderStatus.READY:
            return True
        return is_near_ready(order, parse_timestamp(now) or utc_now(), policy)

    return order.status in PICKABLE_ON_DEMAND
