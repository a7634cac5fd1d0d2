"""
Purpose: Builds the market dispatch queue (what a market dispatcher sees).
What it does:
1. Re-runs the fallback evaluator so time-based handoffs are up to date.
2. Keeps orders of the market's tenants that pass the eligibility gate.
3. Drops orders already claimed by a courier or linked to an active job.
4. Orders the rest: ready_at ascending first, then orders without ready_at
   by arrival (created_at); ties break on created_at, then id.

Rule: Read view. The only write is the fallback side effect in step 1.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

from orders.models import DeliveryJob, Order, parse_timestamp, utc_now
from tenants.models import tenants_in_market
from storage.base import DeliveryJobsRepo, OrdersRepo, TenantsRepo
from .eligibility import is_eligible_for_market_dispatch
from .fallback import evaluate_fallback
from .policy import DispatchPolicy, default_policy

logger = logging.getLogger(__name__)

_MISSING = datetime.min.replace(tzinfo=timezone.utc)


def active_job_order_ids(jobs: Iterable[DeliveryJob]) -> Set[str]:
    """
    Order ids referenced by any job that is not DONE or CANCELED.
    """
    return {order_id for job in jobs if job.is_active for order_id in job.order_ids}


def dispatch_sort_key(order: Order) -> Tuple[int, datetime, datetime, str]:
    """
    Total order for the queue. Orders with ready_at lead (readiness order),
    orders without it follow in arrival order. A missing created_at sorts first.
    """
    created_at = order.created_at or _MISSING
    if order.ready_at is not None:
        return (0, order.ready_at, created_at, order.id)
    return (1, created_at, created_at, order.id)


def build_dispatch_queue(
    market_id: str,
    orders_repo: OrdersRepo,
    tenants_repo: TenantsRepo,
    jobs_repo: DeliveryJobsRepo,
    *,
    policy: Optional[DispatchPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Order]:
    policy = policy or default_policy()
    # One clock for the whole build so fallback and eligibility agree.
    now = parse_timestamp(now) or utc_now()

    evaluate_fallback(market_id, orders_repo, tenants_repo, policy=policy, now=now)

    tenants = tenants_in_market(tenants_repo.find_all(), market_id)
    tenant_ids = {tenant.id for tenant in tenants}
    claimed_by_jobs = active_job_order_ids(jobs_repo.find_all())

    queue = [
        order
        for order in orders_repo.find_all()
        if order.tenant_id in tenant_ids
        and is_eligible_for_market_dispatch(order, tenants, policy=policy, now=now)
        and not order.courier_id
        and order.id not in claimed_by_jobs
    ]
    queue.sort(key=dispatch_sort_key)

    logger.info("Market %s: %d order(s) in dispatch queue", market_id, len(queue))
    return queue
