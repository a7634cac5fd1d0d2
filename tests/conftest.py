from datetime import datetime, timedelta, timezone

import pytest

from orders.models import DeliveryAssignmentMode, FulfillmentType, Order, OrderStatus
from storage import InMemoryDeliveryJobsRepo, InMemoryOrdersRepo, InMemoryTenantsRepo, Repos
from tenants.models import Tenant, TenantType

MARKET_ID = "market-1"


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def minutes_ago(now):
    def _minutes_ago(minutes: float) -> datetime:
        return now - timedelta(minutes=minutes)
    return _minutes_ago


@pytest.fixture
def minutes_from_now(now):
    def _minutes_from_now(minutes: float) -> datetime:
        return now + timedelta(minutes=minutes)
    return _minutes_from_now


@pytest.fixture
def tenants():
    """
    One tenant of each type in the market, all opted in to fallback,
    plus a restaurant that is not opted in and a shop in another market.
    """
    return [
        Tenant.new("resto", TenantType.RESTAURANT, MARKET_ID, allow_market_courier_fallback=True),
        Tenant.new("resto-2", TenantType.RESTAURANT, MARKET_ID, allow_market_courier_fallback=True),
        Tenant.new("shop", TenantType.SHOP, MARKET_ID, allow_market_courier_fallback=True),
        Tenant.new("service", TenantType.SERVICE, MARKET_ID, allow_market_courier_fallback=True),
        Tenant.new("resto-no-fallback", TenantType.RESTAURANT, MARKET_ID, allow_market_courier_fallback=False),
        Tenant.new("shop-elsewhere", TenantType.SHOP, "market-2", allow_market_courier_fallback=True),
    ]


@pytest.fixture
def make_order(now):
    def _make_order(order_id: str, tenant_id: str = "shop", **overrides) -> Order:
        fields = dict(
            id=order_id,
            tenant_id=tenant_id,
            status=OrderStatus.NEW,
            fulfillment_type=FulfillmentType.DELIVERY,
            delivery_assignment_mode=DeliveryAssignmentMode.TENANT,
            created_at=now,
        )
        fields.update(overrides)
        return Order(**fields)
    return _make_order


class RecordingOrdersRepo(InMemoryOrdersRepo):
    """In-memory orders repo that counts write-backs."""

    def __init__(self, orders=None):
        super().__init__(orders)
        self.writes = 0

    def set_all(self, orders):
        self.writes += 1
        super().set_all(orders)


@pytest.fixture
def make_repos(tenants):
    def _make_repos(orders=(), jobs=(), tenant_list=None) -> Repos:
        return Repos(
            orders=RecordingOrdersRepo(orders),
            tenants=InMemoryTenantsRepo(tenants if tenant_list is None else tenant_list),
            delivery_jobs=InMemoryDeliveryJobsRepo(jobs),
        )
    return _make_repos
