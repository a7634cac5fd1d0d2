"""
Purpose: The narrow storage interfaces the dispatch engine consumes.
What it does:
- OrdersRepo: find_all / set_all (whole-collection snapshot read and write)
- TenantsRepo: find_all
- DeliveryJobsRepo: find_all (read-only for the engine)
- Repos: bundle handed to the dispatcher
- StorageError: the one failure the engine surfaces to its caller

Rule: No dispatch rules here. Any storage technology can sit behind these.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from orders.models import DeliveryJob, Order
from tenants.models import Tenant


class StorageError(Exception):
    """Raised when a snapshot cannot be read or written."""
    pass


class OrdersRepo(Protocol):
    def find_all(self) -> List[Order]: ...

    def set_all(self, orders: List[Order]) -> None: ...


class TenantsRepo(Protocol):
    def find_all(self) -> List[Tenant]: ...


class DeliveryJobsRepo(Protocol):
    def find_all(self) -> List[DeliveryJob]: ...


@dataclass
class Repos:
    orders: OrdersRepo
    tenants: TenantsRepo
    delivery_jobs: DeliveryJobsRepo
