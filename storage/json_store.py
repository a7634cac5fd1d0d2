"""
Purpose: JSON snapshot storage (the file-backed driver).
What it does:
- registry.json holds {"tenants": [...], "deliveryJobs": [...], ...}
- orders.json holds the order array (kept separate, it changes most often)
- Records are normalized into models on read and written back in their
  camelCase wire shape; unknown keys survive the round trip.

Writes go to a temp file in the same directory and are moved into place with
os.replace, so a crash mid-write never leaves a truncated snapshot.

Rule: Every I/O or decode failure surfaces as StorageError.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Union

from orders.models import DeliveryJob, Order
from tenants.models import Tenant
from .base import StorageError

logger = logging.getLogger(__name__)

REGISTRY_FILE = "registry.json"
ORDERS_FILE = "orders.json"


class JsonSnapshotStore:
    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    @property
    def registry_path(self) -> Path:
        return self.data_dir / REGISTRY_FILE

    @property
    def orders_path(self) -> Path:
        return self.data_dir / ORDERS_FILE

    # --- raw file access ---

    def _read(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

    def _write(self, path: Path, payload: Any) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc

    def read_registry(self) -> Dict[str, Any]:
        registry = self._read(self.registry_path, {})
        if not isinstance(registry, dict):
            raise StorageError(f"{self.registry_path} must hold a JSON object")
        return registry

    def write_registry(self, registry: Dict[str, Any]) -> None:
        self._write(self.registry_path, registry)

    def read_order_records(self) -> List[Dict[str, Any]]:
        records = self._read(self.orders_path, [])
        if not isinstance(records, list):
            raise StorageError(f"{self.orders_path} must hold a JSON array")
        return records

    def write_order_records(self, records: List[Dict[str, Any]]) -> None:
        self._write(self.orders_path, records)
        logger.info("Wrote %d order(s) to %s", len(records), self.orders_path)


class JsonOrdersRepo:
    def __init__(self, store: JsonSnapshotStore):
        self.store = store

    def find_all(self) -> List[Order]:
        return [Order.from_record(record) for record in self.store.read_order_records()]

    def set_all(self, orders: List[Order]) -> None:
        self.store.write_order_records([order.to_record() for order in orders])


class JsonTenantsRepo:
    def __init__(self, store: JsonSnapshotStore):
        self.store = store

    def find_all(self) -> List[Tenant]:
        return [Tenant.from_record(record) for record in self.store.read_registry().get("tenants", [])]

    def set_all(self, tenants: List[Tenant]) -> None:
        registry = self.store.read_registry()
        registry["tenants"] = [tenant.to_record() for tenant in tenants]
        self.store.write_registry(registry)


class JsonDeliveryJobsRepo:
    def __init__(self, store: JsonSnapshotStore):
        self.store = store

    def find_all(self) -> List[DeliveryJob]:
        return [DeliveryJob.from_record(record) for record in self.store.read_registry().get("deliveryJobs", [])]

    def set_all(self, jobs: List[DeliveryJob]) -> None:
        registry = self.store.read_registry()
        registry["deliveryJobs"] = [job.to_record() for job in jobs]
        self.store.write_registry(registry)
