"""
Orders domain package.

Public API:
- Domain models: Order, DeliveryJob, DeliveryJobItem
- Enums: OrderStatus, FulfillmentType, DeliveryAssignmentMode, DeliveryJobStatus
- (Placement defaults live in orders.intake, batching in orders.batching)
"""
from .models import (
    DeliveryAssignmentMode,
    DeliveryJob,
    DeliveryJobItem,
    DeliveryJobStatus,
    FulfillmentType,
    Order,
    OrderStatus,
)

__all__ = [
    "Order",
    "DeliveryJob",
    "DeliveryJobItem",
    "OrderStatus",
    "FulfillmentType",
    "DeliveryAssignmentMode",
    "DeliveryJobStatus",
]
