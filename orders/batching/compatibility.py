"""
Purpose: Pairwise batch compatibility (can two orders share one courier trip?).
What it does:
- RESTAURANT on either side: same kitchen only, and ready times within the
  batch window (or both already READY when a ready time is missing).
- SHOP/SERVICE on both sides: always compatible, different tenants included.

Rule: Pure predicate. Symmetric in its two orders.
"""

from __future__ import annotations

from typing import Iterable, Optional

from tenants.models import Tenant, TenantType, resolve_tenant_type
from ..models import Order, OrderStatus, minutes_between
from .policy import BatchingPolicy, default_policy


def can_batch(
    order_a: Order,
    order_b: Order,
    tenants: Iterable[Tenant],
    *,
    policy: Optional[BatchingPolicy] = None,
) -> bool:
    policy = policy or default_policy()
    tenants = list(tenants)

    type_a = resolve_tenant_type(tenants, order_a.tenant_id)
    type_b = resolve_tenant_type(tenants, order_b.tenant_id)

    if TenantType.RESTAURANT not in (type_a, type_b):
        return True

    # Restaurant orders only batch within the same kitchen.
    if order_a.tenant_id != order_b.tenant_id:
        return False

    if order_a.ready_at is None or order_b.ready_at is None:
        return order_a.status == OrderStatus.READY and order_b.status == OrderStatus.READY

    gap = abs(minutes_between(order_a.ready_at, order_b.ready_at))
    return gap <= policy.batch_window_minutes
