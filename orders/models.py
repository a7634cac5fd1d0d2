"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, tenant, status, fulfillment, readiness, assignment mode, courier)
- DeliveryJob (job id, market, status, ordered items)
- DeliveryJobItem (order_id, tenant_id)

Defines enums/constants:
- OrderStatus = NEW | PREPARING | READY | OUT_FOR_DELIVERY | DELIVERED | CANCELED
- FulfillmentType = PICKUP | DELIVERY
- DeliveryAssignmentMode = TENANT | MARKET
- DeliveryJobStatus = NEW | ASSIGNED | PICKING | DELIVERING | DONE | CANCELED

Defines snapshot normalization (from_record / to_record): stored records have a
loose camelCase shape, defaults are resolved here once per load so predicates
never have to.

Rule: No dispatch rules here. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import math
import uuid


class OrderStatus(str, Enum):
    NEW = "NEW"
    PREPARING = "PREPARING"
    READY = "READY"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


class FulfillmentType(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"


class DeliveryAssignmentMode(str, Enum):
    TENANT = "TENANT"
    MARKET = "MARKET"


class DeliveryJobStatus(str, Enum):
    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    PICKING = "PICKING"
    DELIVERING = "DELIVERING"
    DONE = "DONE"
    CANCELED = "CANCELED"


# Statuses after which an order can no longer be handed to a market courier.
IN_FLIGHT_OR_CLOSED = frozenset({
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELED,
})

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELED})

INACTIVE_JOB_STATUSES = frozenset({DeliveryJobStatus.DONE, DeliveryJobStatus.CANCELED})


# --- Timestamp helpers ---

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp. Accepts a trailing 'Z'; naive values are UTC.
    Empty values parse to None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def minutes_between(start: datetime, end: datetime) -> float:
    """
    Signed minutes from start to end (negative when end is before start).
    """
    return (end - start).total_seconds() / 60.0


def parse_minutes(value: Any, record_id: Any = None) -> Optional[float]:
    """
    Minutes from a stored record. Whole numbers come back as int, fractions are
    kept (12.5 stays 12.5). Negative or non-numeric values raise ValueError.
    """
    if value is None or value == "":
        return None
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Record {record_id!r}: {value!r} is not a number of minutes") from None
    if not math.isfinite(minutes) or minutes < 0:
        raise ValueError(f"Record {record_id!r}: minutes must be a finite number >= 0, got {value!r}")
    return int(minutes) if minutes.is_integer() else minutes


def _enum_value(enum_cls, raw, default, record_id):
    if raw is None or raw == "":
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValueError(f"Record {record_id!r}: {raw!r} is not a valid {enum_cls.__name__}") from None


@dataclass
class Order:
    """
    One customer purchase awaiting fulfillment.

    Only delivery_assignment_mode and fallback_triggered_at are ever written by
    the dispatch engine; everything else belongs to the ordering flow.
    """

    id: str
    tenant_id: Optional[str]
    status: OrderStatus = OrderStatus.NEW
    fulfillment_type: FulfillmentType = FulfillmentType.DELIVERY

    prep_time_min: Optional[float] = None
    ready_at: Optional[datetime] = None

    delivery_assignment_mode: DeliveryAssignmentMode = DeliveryAssignmentMode.TENANT
    # Set once when fallback flips the mode; guards against re-evaluation.
    fallback_triggered_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    courier_id: Optional[str] = None
    market_id: Optional[str] = None

    # Everything else on the stored record (items, payment, customer...).
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_market_assigned(self) -> bool:
        return self.delivery_assignment_mode == DeliveryAssignmentMode.MARKET

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Order:
        """
        Normalize a stored order record.

        Defaults: status PREPARING, fulfillmentType DELIVERY,
        deliveryAssignmentMode TENANT. Timestamps and courierId stay optional.
        """
        known = {
            "id", "tenantId", "status", "fulfillmentType", "prepTimeMin", "readyAt",
            "deliveryAssignmentMode", "fallbackTriggeredAt", "createdAt", "courierId", "marketId",
        }
        record_id = record.get("id")
        if record_id is None:
            raise ValueError("Order record without id")

        return cls(
            id=str(record_id),
            tenant_id=record.get("tenantId"),
            status=_enum_value(OrderStatus, record.get("status"), OrderStatus.PREPARING, record_id),
            fulfillment_type=_enum_value(
                FulfillmentType, record.get("fulfillmentType"), FulfillmentType.DELIVERY, record_id
            ),
            prep_time_min=parse_minutes(record.get("prepTimeMin"), record_id),
            ready_at=parse_timestamp(record.get("readyAt")),
            delivery_assignment_mode=_enum_value(
                DeliveryAssignmentMode, record.get("deliveryAssignmentMode"), DeliveryAssignmentMode.TENANT, record_id
            ),
            fallback_triggered_at=parse_timestamp(record.get("fallbackTriggeredAt")),
            created_at=parse_timestamp(record.get("createdAt")),
            courier_id=record.get("courierId") or None,
            market_id=record.get("marketId"),
            extras={k: v for k, v in record.items() if k not in known},
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = dict(self.extras)
        record.update({
            "id": self.id,
            "tenantId": self.tenant_id,
            "status": self.status.value,
            "fulfillmentType": self.fulfillment_type.value,
            "deliveryAssignmentMode": self.delivery_assignment_mode.value,
        })
        optional = {
            "prepTimeMin": self.prep_time_min,
            "readyAt": format_timestamp(self.ready_at),
            "fallbackTriggeredAt": format_timestamp(self.fallback_triggered_at),
            "createdAt": format_timestamp(self.created_at),
            "courierId": self.courier_id,
            "marketId": self.market_id,
        }
        record.update({key: value for key, value in optional.items() if value is not None})
        return record


@dataclass(frozen=True)
class DeliveryJobItem:
    order_id: str
    tenant_id: str


@dataclass
class DeliveryJob:
    """
    A courier trip grouping one or more orders. Maintained by the job-creation
    process; the engine only reads it.
    """
    id: str
    market_id: Optional[str]
    status: DeliveryJobStatus
    items: List[DeliveryJobItem]

    courier_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_JOB_STATUSES

    @property
    def order_ids(self) -> List[str]:
        return [item.order_id for item in self.items]

    @staticmethod  # Factory method to draft a Job for a group of Orders
    def new(market_id: str, orders: List[Order], now: Optional[datetime] = None) -> DeliveryJob:
        return DeliveryJob(
            id=f"job-{uuid.uuid4()}",
            market_id=market_id,
            status=DeliveryJobStatus.NEW,
            items=[DeliveryJobItem(order_id=order.id, tenant_id=order.tenant_id or "") for order in orders],
            created_at=parse_timestamp(now) or utc_now(),
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> DeliveryJob:
        job_id = record.get("id")
        return cls(
            id=str(job_id),
            market_id=record.get("marketId"),
            status=_enum_value(DeliveryJobStatus, record.get("status"), DeliveryJobStatus.NEW, job_id),
            items=[
                DeliveryJobItem(order_id=str(item["orderId"]), tenant_id=str(item.get("tenantId", "")))
                for item in record.get("items") or []
            ],
            courier_id=record.get("courierId") or None,
            created_at=parse_timestamp(record.get("createdAt")),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "marketId": self.market_id,
            "status": self.status.value,
            "items": [{"orderId": item.order_id, "tenantId": item.tenant_id} for item in self.items],
        }
        if self.courier_id is not None:
            record["courierId"] = self.courier_id
        if self.created_at is not None:
            record["createdAt"] = format_timestamp(self.created_at)
        return record
