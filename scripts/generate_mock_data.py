import json
import os
import uuid
from datetime import datetime, timezone, timedelta

import numpy as np
import pandas as pd

from orders.models import format_timestamp

def generate_mock_market(num_orders=200, num_tenants=12, market_id="market-1", output_dir="data", seed=None):
    """
    Generates a market snapshot (registry.json + orders.json) for the dispatch engine.
    A small number of tenants is used on purpose so several orders share a kitchen,
    which gives the fallback evaluator and the batching engine something to work with.
    """
    rng = np.random.default_rng(seed)
    now = datetime.now(timezone.utc)

    # 1. Generate tenants (mostly restaurants, like a real food market)
    tenants = []
    for tenant_index in range(num_tenants):
        tenant_type = rng.choice(["RESTAURANT", "SHOP", "SERVICE"], p=[0.6, 0.3, 0.1])
        tenants.append({
            "id": f"t_{str(uuid.uuid4())[:8]}",
            "name": f"{tenant_type.title()} {tenant_index+1}",
            "tenantType": str(tenant_type),
            "marketId": market_id,
            "allowMarketCourierFallback": bool(rng.random() < 0.7),
            "deliveryProviderMode": str(rng.choice(["TENANT", "MARKET", "PICKUP_ONLY"], p=[0.7, 0.2, 0.1])),
            "defaultPrepTimeMin": int(rng.choice([15, 20, 25, 30])) if tenant_type == "RESTAURANT" else None,
        })

    orders = []

    # 2. Generate orders spread over the last hour
    for order_index in range(num_orders):
        tenant = tenants[rng.integers(0, len(tenants))]
        created_at = now - timedelta(minutes=int(rng.integers(0, 60)))
        fulfillment = "PICKUP" if tenant["deliveryProviderMode"] == "PICKUP_ONLY" or rng.random() < 0.1 else "DELIVERY"

        if tenant["tenantType"] == "RESTAURANT":
            prep = tenant["defaultPrepTimeMin"]
            ready_at = created_at + timedelta(minutes=prep)
            status = "READY" if ready_at <= now and rng.random() < 0.8 else "PREPARING"
        else:
            prep = None
            ready_at = created_at
            status = str(rng.choice(["NEW", "PREPARING", "READY"]))

        # A few orders already left the kitchen
        if rng.random() < 0.1:
            status = str(rng.choice(["OUT_FOR_DELIVERY", "DELIVERED", "CANCELED"]))

        mode = "MARKET" if tenant["deliveryProviderMode"] == "MARKET" and fulfillment == "DELIVERY" else "TENANT"

        orders.append({
            "id": f"o_{str(order_index+1).zfill(6)}",
            "tenantId": tenant["id"],
            "marketId": market_id,
            "status": status,
            "fulfillmentType": fulfillment,
            "prepTimeMin": prep,
            "readyAt": format_timestamp(ready_at),
            "createdAt": format_timestamp(created_at),
            "deliveryAssignmentMode": mode,
            "customerName": f"Customer {rng.integers(1000, 9999)}",
            "total": round(float(rng.uniform(5.0, 60.0)), 2),
        })

    # A few READY orders are already on a courier trip
    jobs = []
    ready = [o for o in orders if o["status"] == "READY" and o["fulfillmentType"] == "DELIVERY"]
    for job_index, order in enumerate(ready[:3]):
        jobs.append({
            "id": f"job-{uuid.uuid4()}",
            "marketId": market_id,
            "status": str(rng.choice(["NEW", "ASSIGNED", "PICKING"])),
            "items": [{"orderId": order["id"], "tenantId": order["tenantId"]}],
            "createdAt": format_timestamp(now - timedelta(minutes=job_index + 1)),
        })

    # 3. Save the snapshot
    os.makedirs(output_dir, exist_ok=True)
    registry = {
        "markets": [{"id": market_id, "name": "Mock Market"}],
        "tenants": [{k: v for k, v in t.items() if v is not None} for t in tenants],
        "deliveryJobs": jobs,
    }
    with open(os.path.join(output_dir, "registry.json"), "w", encoding="utf-8") as fh:
        json.dump(registry, fh, indent=2)
    with open(os.path.join(output_dir, "orders.json"), "w", encoding="utf-8") as fh:
        json.dump([{k: v for k, v in o.items() if v is not None} for o in orders], fh, indent=2)
    print(f"Generated {num_tenants} tenants, {num_orders} orders and {len(jobs)} jobs in '{output_dir}/'")

    # Print a quick preview of the mix
    df = pd.DataFrame(orders).merge(
        pd.DataFrame(tenants)[["id", "tenantType"]].rename(columns={"id": "tenantId"}),
        on="tenantId",
    )
    print("\nOrders per tenant type / status:")
    print(pd.crosstab(df["tenantType"], df["status"]).to_string())

if __name__ == "__main__":
    generate_mock_market(num_orders=200, num_tenants=12)
