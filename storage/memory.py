"""
In-memory repositories with snapshot semantics: callers always get copies,
so mutating a loaded order has no effect until set_all() is called.
"""

from __future__ import annotations

import copy
from typing import Iterable, List, Optional

from orders.models import DeliveryJob, Order
from tenants.models import Tenant


class InMemoryOrdersRepo:
    def __init__(self, orders: Optional[Iterable[Order]] = None):
        self._orders: List[Order] = copy.deepcopy(list(orders or []))

    def find_all(self) -> List[Order]:
        return copy.deepcopy(self._orders)

    def set_all(self, orders: List[Order]) -> None:
        self._orders = copy.deepcopy(list(orders))


class InMemoryTenantsRepo:
    def __init__(self, tenants: Optional[Iterable[Tenant]] = None):
        self._tenants: List[Tenant] = list(tenants or [])

    def find_all(self) -> List[Tenant]:
        # Tenants are frozen; a shallow copy of the list is enough.
        return list(self._tenants)

    def set_all(self, tenants: List[Tenant]) -> None:
        self._tenants = list(tenants)


class InMemoryDeliveryJobsRepo:
    def __init__(self, jobs: Optional[Iterable[DeliveryJob]] = None):
        self._jobs: List[DeliveryJob] = copy.deepcopy(list(jobs or []))

    def find_all(self) -> List[DeliveryJob]:
        return copy.deepcopy(self._jobs)

    def set_all(self, jobs: List[DeliveryJob]) -> None:
        self._jobs = copy.deepcopy(list(jobs))
