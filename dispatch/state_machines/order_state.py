from datetime import datetime
from typing import Optional

from orders.models import DeliveryAssignmentMode, Order, OrderStatus, TERMINAL_STATUSES, parse_timestamp, utc_now

# Forward progression; CANCELED sits outside it.
STATUS_SEQUENCE = [
    OrderStatus.NEW,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]


class OrderStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def transition_order_status(order: Order, new_status: OrderStatus) -> Order:
    """
    Move an order along NEW -> PREPARING -> READY -> OUT_FOR_DELIVERY -> DELIVERED.
    Skipping forward is allowed, going back is not. CANCELED is reachable from
    any non-terminal state. Re-applying the current status is a no-op.
    """
    if new_status == order.status:
        return order

    if order.status in TERMINAL_STATUSES:
        raise OrderStateException(f"Order {order.id} is {order.status.value}; cannot move to {new_status.value}")

    if new_status == OrderStatus.CANCELED:
        order.status = new_status
        return order

    if STATUS_SEQUENCE.index(new_status) < STATUS_SEQUENCE.index(order.status):
        raise OrderStateException(f"Cannot move order {order.id} back from {order.status.value} to {new_status.value}")

    order.status = new_status
    return order


def promote_to_market(order: Order, now: Optional[datetime] = None) -> bool:
    """
    One-way TENANT -> MARKET handoff of delivery responsibility.
    Once fallback_triggered_at is stamped the order is never touched again.
    Returns True only when this call made the change.
    """
    if order.delivery_assignment_mode == DeliveryAssignmentMode.MARKET or order.fallback_triggered_at is not None:
        return False

    order.delivery_assignment_mode = DeliveryAssignmentMode.MARKET
    order.fallback_triggered_at = parse_timestamp(now) or utc_now()
    return True
