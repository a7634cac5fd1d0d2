"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Serializes every read-modify-write on a market's order snapshot behind that
market's lock, then runs fallback, queue construction and batch proposals.
Two callers (an HTTP handler and a scheduler tick, say) asking for the same
market at the same time run one after the other, so neither overwrites the
other's fallback flips. Different markets run independently.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from orders.batching.engine import BatchResult, group_into_batches
from orders.batching.policy import BatchingPolicy, default_policy as default_batching_policy
from orders.models import Order, parse_timestamp, utc_now
from storage.base import Repos, StorageError
from tenants.models import tenants_in_market
from .fallback import evaluate_fallback
from .policy import DispatchPolicy, default_policy
from .queue import build_dispatch_queue

logger = logging.getLogger(__name__)


class MarketDispatcher:
    """
    Single writer per market over whole-collection snapshots.
    """
    def __init__(
        self,
        repos: Repos,
        *,
        policy: Optional[DispatchPolicy] = None,
        batching_policy: Optional[BatchingPolicy] = None,
    ):
        self.repos = repos
        self.policy = policy or default_policy()
        self.batching_policy = batching_policy or default_batching_policy()
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, market_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(market_id)
            if lock is None:
                lock = self._locks[market_id] = threading.Lock()
            return lock

    def run_fallback(self, market_id: str, now: Optional[datetime] = None) -> List[Order]:
        """
        Scheduler tick entry point: hand overdue orders to market couriers.
        """
        with self.lock_for(market_id):
            try:
                return evaluate_fallback(
                    market_id,
                    self.repos.orders,
                    self.repos.tenants,
                    policy=self.policy,
                    now=parse_timestamp(now) or utc_now(),
                )
            except StorageError:
                logger.exception("Market %s: fallback write-back failed", market_id)
                raise

    def dispatch_queue(self, market_id: str, now: Optional[datetime] = None) -> List[Order]:
        with self.lock_for(market_id):
            try:
                return build_dispatch_queue(
                    market_id,
                    self.repos.orders,
                    self.repos.tenants,
                    self.repos.delivery_jobs,
                    policy=self.policy,
                    now=parse_timestamp(now) or utc_now(),
                )
            except StorageError:
                logger.exception("Market %s: dispatch queue build failed", market_id)
                raise

    def propose_batches(self, market_id: str, now: Optional[datetime] = None) -> BatchResult:
        """
        Queue first, then group it into trips for the job-creation process.
        """
        queue = self.dispatch_queue(market_id, now=now)
        tenants = tenants_in_market(self.repos.tenants.find_all(), market_id)
        return group_into_batches(queue, tenants, policy=self.batching_policy)
