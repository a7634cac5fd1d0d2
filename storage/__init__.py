#Marks storage as a package.
#Re-exports the repository interfaces and the driver switch so callers
#do `from storage import create_repos` without knowing file names.
#STORAGE_DRIVER=json (default) | memory
#DISPATCH_DATA_DIR=./data (json driver only)

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

from .base import DeliveryJobsRepo, OrdersRepo, Repos, StorageError, TenantsRepo
from .json_store import JsonDeliveryJobsRepo, JsonOrdersRepo, JsonSnapshotStore, JsonTenantsRepo
from .memory import InMemoryDeliveryJobsRepo, InMemoryOrdersRepo, InMemoryTenantsRepo


def create_repos(driver: Optional[str] = None, data_dir: Optional[str] = None) -> Repos:
    load_dotenv()
    driver = (driver or os.getenv("STORAGE_DRIVER") or "json").lower()

    if driver == "memory":
        return Repos(
            orders=InMemoryOrdersRepo(),
            tenants=InMemoryTenantsRepo(),
            delivery_jobs=InMemoryDeliveryJobsRepo(),
        )
    if driver == "json":
        store = JsonSnapshotStore(data_dir or os.getenv("DISPATCH_DATA_DIR") or "data")
        return Repos(
            orders=JsonOrdersRepo(store),
            tenants=JsonTenantsRepo(store),
            delivery_jobs=JsonDeliveryJobsRepo(store),
        )
    raise ValueError(f"Unknown STORAGE_DRIVER {driver!r} (expected 'json' or 'memory')")


__all__ = [
    "create_repos",
    "Repos",
    "OrdersRepo",
    "TenantsRepo",
    "DeliveryJobsRepo",
    "StorageError",
    "JsonSnapshotStore",
    "JsonOrdersRepo",
    "JsonTenantsRepo",
    "JsonDeliveryJobsRepo",
    "InMemoryOrdersRepo",
    "InMemoryTenantsRepo",
    "InMemoryDeliveryJobsRepo",
]
