"""
Purpose: Order placement defaults and the kitchen "ready" signal.
What it does:
- prepare_new_order: fills in what the ordering flow leaves implicit
  (created_at, market_id, assignment mode from the tenant's provider mode,
  restaurant prep time / ready_at).
- mark_ready: the merchant marks an order READY; ready_at becomes now.

Rule: Called by the ordering flow, never by the dispatch engine itself.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from dispatch.policy import DispatchPolicy, default_policy
from dispatch.state_machines.order_state import transition_order_status
from tenants.models import DeliveryProviderMode, Tenant, TenantType
from .models import DeliveryAssignmentMode, FulfillmentType, Order, OrderStatus, parse_timestamp, utc_now


def prepare_new_order(
    order: Order,
    tenant: Optional[Tenant],
    *,
    policy: Optional[DispatchPolicy] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Apply placement defaults to a freshly created order (mutates and returns it).

    - PICKUP orders, or tenants that only offer pickup, never involve a courier:
      mode stays TENANT.
    - An order still NEW is placed straight into PREPARING, whatever its
      fulfillment or tenant type. An explicit later status is kept.
    - Delivery orders start in MARKET mode when the tenant hands all delivery
      to the market, TENANT otherwise.
    - RESTAURANT delivery orders get a prep time (order -> tenant -> policy)
      and ready_at = created_at + prep time. SHOP/SERVICE are ready at creation.
    """
    policy = policy or default_policy()
    now = parse_timestamp(now) or utc_now()

    if order.created_at is None:
        order.created_at = now
    if order.status == OrderStatus.NEW:
        transition_order_status(order, OrderStatus.PREPARING)
    if tenant is not None and tenant.market_id:
        order.market_id = tenant.market_id

    provider_mode = tenant.delivery_provider_mode if tenant else DeliveryProviderMode.TENANT
    if order.fulfillment_type == FulfillmentType.PICKUP or provider_mode == DeliveryProviderMode.PICKUP_ONLY:
        order.delivery_assignment_mode = DeliveryAssignmentMode.TENANT
        return order

    if provider_mode == DeliveryProviderMode.MARKET:
        order.delivery_assignment_mode = DeliveryAssignmentMode.MARKET
    else:
        order.delivery_assignment_mode = DeliveryAssignmentMode.TENANT

    tenant_type = tenant.tenant_type if tenant else TenantType.SHOP
    if tenant_type == TenantType.RESTAURANT:
        prep_min = order.prep_time_min
        if prep_min is None:
            prep_min = tenant.default_prep_time_min if tenant.default_prep_time_min is not None else policy.default_prep_time_min
        order.prep_time_min = prep_min
        order.ready_at = order.created_at + timedelta(minutes=prep_min)
    else:
        order.ready_at = order.created_at

    return order


def mark_ready(order: Order, *, now: Optional[datetime] = None) -> Order:
    """
    Kitchen/merchant signal: the order can be picked up right now.
    """
    transition_order_status(order, OrderStatus.READY)
    order.ready_at = parse_timestamp(now) or utc_now()
    return order
