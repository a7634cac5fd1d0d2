"""
Purpose: The batching "orchestrator" (single entry point).
What it does:

Coordinates grouping of a dispatch queue into courier trips:

- takes the ordered dispatch queue (readiness / arrival order)

- seeds a batch with the oldest unused order

- adds later orders that are compatible with every current member
  (compatibility.py), up to the policy's max batch size

- returns the batches + the orders left on their own

- drafts a DeliveryJob for one chosen group, validating it first

Rule: Engine is the only file other modules should call directly for batching.
It never persists anything; job creation stays with the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from tenants.models import Tenant, find_tenant
from ..models import DeliveryJob, Order
from .compatibility import can_batch
from .policy import BatchingPolicy, default_policy


@dataclass(frozen=True)
class BatchResult:
    """
    Output of a grouping run over a dispatch queue.
    """
    batches: List[List[Order]]
    unbatched_orders: List[Order]


def group_into_batches(
    queue: Sequence[Order],
    tenants: Iterable[Tenant],
    *,
    policy: Optional[BatchingPolicy] = None,
) -> BatchResult:
    """
    Greedy, order-preserving grouping.

    The queue is already sorted by urgency, so each unused order seeds a batch
    and only later orders can join it. A candidate joins only when it can be
    batched with every order already in the batch (pairwise compatibility is
    not transitive for restaurant ready windows).
    """
    policy = policy or default_policy()
    policy.validate()
    tenants = list(tenants)

    batches: List[List[Order]] = []
    unbatched: List[Order] = []
    used_order_ids: set[str] = set()

    for index, seed in enumerate(queue):
        if seed.id in used_order_ids:
            continue
        used_order_ids.add(seed.id)
        batch = [seed]

        for candidate in queue[index + 1:]:
            if len(batch) >= policy.max_batch_size:
                break
            if candidate.id in used_order_ids:
                continue
            if all(can_batch(member, candidate, tenants, policy=policy) for member in batch):
                batch.append(candidate)
                used_order_ids.add(candidate.id)

        if len(batch) > 1:
            batches.append(batch)
        else:
            unbatched.append(seed)

    return BatchResult(batches=batches, unbatched_orders=unbatched)


def draft_delivery_job(
    market_id: str,
    orders: Sequence[Order],
    tenants: Iterable[Tenant],
    *,
    policy: Optional[BatchingPolicy] = None,
    now: Optional[datetime] = None,
) -> DeliveryJob:
    """
    Build a NEW DeliveryJob for the given orders after checking that every
    order belongs to a tenant of this market and that all of them can share
    one trip. Raises ValueError otherwise.
    """
    policy = policy or default_policy()
    tenants = list(tenants)

    if not orders:
        raise ValueError("A delivery job needs at least one order")

    for order in orders:
        tenant = find_tenant(tenants, order.tenant_id)
        if tenant is None or tenant.market_id != market_id:
            raise ValueError(f"Order {order.id} tenant not in market {market_id}")

    for i, order_a in enumerate(orders):
        for order_b in orders[i + 1:]:
            if not can_batch(order_a, order_b, tenants, policy=policy):
                raise ValueError(f"Orders {order_a.id} and {order_b.id} cannot share a trip")

    return DeliveryJob.new(market_id, list(orders), now=now)
