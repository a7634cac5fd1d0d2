import json
import os

import pytest

from dispatch.fallback import evaluate_fallback
from orders.models import DeliveryAssignmentMode, DeliveryJobStatus, FulfillmentType, Order, OrderStatus
from storage import JsonSnapshotStore, StorageError, create_repos
from storage.memory import InMemoryOrdersRepo
from tenants.models import DeliveryProviderMode, Tenant, TenantType

REGISTRY = {
    "markets": [{"id": "market-1", "name": "Old Town"}],
    "tenants": [
        {"id": "resto", "slug": "pizza", "tenantType": "RESTAURANT", "marketId": "market-1",
         "allowMarketCourierFallback": True, "defaultPrepTimeMin": 25},
        {"id": "legacy-food", "type": "FOOD", "marketId": "market-1"},
        {"id": "legacy-retail", "type": "RETAIL"},
        {"id": "odd", "tenantType": "KIOSK", "deliveryProviderMode": "PICKUP_ONLY"},
    ],
    "deliveryJobs": [
        {"id": "job-1", "marketId": "market-1", "status": "ASSIGNED", "courierId": "c1",
         "items": [{"orderId": "o1", "tenantId": "resto"}], "createdAt": "2026-10-19T11:30:00.000Z"},
    ],
}

ORDERS = [
    {"id": "o1", "tenantId": "resto", "status": "PREPARING", "fulfillmentType": "DELIVERY",
     "readyAt": "2026-10-19T12:08:00.000Z", "createdAt": "2026-10-19T11:40:00.000Z",
     "deliveryAssignmentMode": "TENANT", "total": 42.5, "items": [{"productId": "p1", "qty": 2}]},
    {"id": "o2", "tenantId": "resto"},
]


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "registry.json").write_text(json.dumps(REGISTRY), encoding="utf-8")
    (tmp_path / "orders.json").write_text(json.dumps(ORDERS), encoding="utf-8")
    return tmp_path


def test_orders_are_normalized_on_load(data_dir):
    repos = create_repos("json", str(data_dir))

    o1, o2 = repos.orders.find_all()

    assert o1.status == OrderStatus.PREPARING
    assert o1.ready_at.isoformat() == "2026-10-19T12:08:00+00:00"
    assert o1.extras == {"total": 42.5, "items": [{"productId": "p1", "qty": 2}]}
    # Defaults for a bare record.
    assert o2.status == OrderStatus.PREPARING
    assert o2.fulfillment_type == FulfillmentType.DELIVERY
    assert o2.delivery_assignment_mode == DeliveryAssignmentMode.TENANT
    assert o2.created_at is None
    assert o2.ready_at is None
    assert o2.courier_id is None


def test_tenants_are_normalized_on_load(data_dir):
    repos = create_repos("json", str(data_dir))

    tenants = {t.id: t for t in repos.tenants.find_all()}

    assert tenants["resto"].tenant_type == TenantType.RESTAURANT
    assert tenants["resto"].allow_market_courier_fallback is True
    assert tenants["resto"].default_prep_time_min == 25
    assert tenants["resto"].extras == {"slug": "pizza"}
    assert tenants["legacy-food"].tenant_type == TenantType.RESTAURANT
    assert tenants["legacy-food"].allow_market_courier_fallback is False
    assert tenants["legacy-retail"].tenant_type == TenantType.SHOP
    assert tenants["legacy-retail"].market_id is None
    assert tenants["odd"].tenant_type == TenantType.SHOP
    assert tenants["odd"].delivery_provider_mode == DeliveryProviderMode.PICKUP_ONLY


def test_delivery_jobs_load(data_dir):
    repos = create_repos("json", str(data_dir))

    (job,) = repos.delivery_jobs.find_all()

    assert job.status == DeliveryJobStatus.ASSIGNED
    assert job.order_ids == ["o1"]
    assert job.courier_id == "c1"
    assert job.is_active


def test_fallback_round_trip_through_json(data_dir, now):
    repos = create_repos("json", str(data_dir))

    triggered = evaluate_fallback("market-1", repos.orders, repos.tenants, now=now)

    saved = json.loads((data_dir / "orders.json").read_text(encoding="utf-8"))
    assert [o.id for o in triggered] == ["o1"]
    assert saved[0]["deliveryAssignmentMode"] == "MARKET"
    assert saved[0]["fallbackTriggeredAt"] == "2026-10-19T12:00:00.000Z"
    assert saved[0]["total"] == 42.5
    assert saved[0]["items"] == [{"productId": "p1", "qty": 2}]
    assert saved[1]["id"] == "o2"
    # Registry untouched.
    assert json.loads((data_dir / "registry.json").read_text(encoding="utf-8")) == REGISTRY


def test_missing_files_read_as_empty(tmp_path):
    repos = create_repos("json", str(tmp_path / "nothing-here"))

    assert repos.orders.find_all() == []
    assert repos.tenants.find_all() == []
    assert repos.delivery_jobs.find_all() == []


def test_corrupt_snapshot_raises_storage_error(tmp_path):
    (tmp_path / "orders.json").write_text("{not json", encoding="utf-8")
    repos = create_repos("json", str(tmp_path))

    with pytest.raises(StorageError):
        repos.orders.find_all()


def test_unknown_status_is_reported(tmp_path):
    (tmp_path / "orders.json").write_text(json.dumps([{"id": "o9", "status": "LOST"}]), encoding="utf-8")
    repos = create_repos("json", str(tmp_path))

    with pytest.raises(ValueError, match="o9"):
        repos.orders.find_all()


def test_write_failure_surfaces_to_caller(data_dir, now, monkeypatch):
    """
    A failed write-back must reach the caller, not be swallowed.
    """
    repos = create_repos("json", str(data_dir))

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(StorageError, match="disk full"):
        evaluate_fallback("market-1", repos.orders, repos.tenants, now=now)

    leftovers = [p.name for p in data_dir.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_tenant_and_job_write_back_keep_other_registry_keys(data_dir):
    store = JsonSnapshotStore(data_dir)
    repos = create_repos("json", str(data_dir))

    repos.delivery_jobs.set_all([])

    registry = store.read_registry()
    assert registry["deliveryJobs"] == []
    assert registry["markets"] == REGISTRY["markets"]
    assert len(registry["tenants"]) == 4


def test_order_record_round_trip(now):
    order = Order(id="o1", tenant_id="shop", status=OrderStatus.READY, created_at=now, courier_id="c7",
                  extras={"customerName": "Lina"})

    again = Order.from_record(order.to_record())

    assert again == order
    assert again.extras == {"customerName": "Lina"}


def test_tenant_record_round_trip():
    tenant = Tenant.new("t1", "SERVICE", "market-1", allow_market_courier_fallback=True, default_prep_time_min=15)

    assert Tenant.from_record(tenant.to_record()) == tenant


def test_memory_repo_hands_out_snapshots(make_order):
    repo = InMemoryOrdersRepo([make_order("o1")])

    loaded = repo.find_all()
    loaded[0].status = OrderStatus.CANCELED

    assert repo.find_all()[0].status == OrderStatus.NEW


def test_memory_driver(monkeypatch):
    monkeypatch.setenv("STORAGE_DRIVER", "memory")

    repos = create_repos()

    assert repos.orders.find_all() == []
    assert isinstance(repos.orders, InMemoryOrdersRepo)


def test_unknown_driver():
    with pytest.raises(ValueError, match="STORAGE_DRIVER"):
        create_repos("postgres")


def test_invalid_utf8_snapshot_raises_storage_error(tmp_path):
    (tmp_path / "orders.json").write_bytes(b'[{"id": "o1", "note": "\xff\xfe"}]')
    repos = create_repos("json", str(tmp_path))

    with pytest.raises(StorageError):
        repos.orders.find_all()


def test_fractional_prep_times_are_kept(tmp_path):
    (tmp_path / "orders.json").write_text(json.dumps([{"id": "o1", "prepTimeMin": 12.5}]), encoding="utf-8")
    (tmp_path / "registry.json").write_text(
        json.dumps({"tenants": [{"id": "resto", "tenantType": "RESTAURANT", "defaultPrepTimeMin": 17.5}]}),
        encoding="utf-8",
    )
    repos = create_repos("json", str(tmp_path))

    assert repos.orders.find_all()[0].prep_time_min == 12.5
    assert repos.tenants.find_all()[0].default_prep_time_min == 17.5


@pytest.mark.parametrize("prep", ["soon", -5])
def test_bad_prep_time_names_the_record(prep):
    with pytest.raises(ValueError, match="o7"):
        Order.from_record({"id": "o7", "prepTimeMin": prep})


def test_unknown_provider_mode_names_the_tenant():
    with pytest.raises(ValueError, match="t9"):
        Tenant.from_record({"id": "t9", "deliveryProviderMode": "DRONE"})
