import logging
import os
from datetime import timedelta

import pandas as pd

from dispatch import MarketDispatcher, policy_from_env
from orders.batching import draft_delivery_job, policy_from_env as batching_policy_from_env
from orders.models import OrderStatus, utc_now
from storage import create_repos
from tenants.models import tenants_in_market

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

def run_simulation(market_id="market-1", ticks=6, tick_minutes=2, data_dir=None):
    """
    Replays a few scheduler ticks over the JSON snapshot. Each tick runs the fallback
    evaluator, builds the dispatch queue and drafts jobs for the proposed batches.
    Drafted jobs are written back so their orders drop out of the next queue.
    """
    print("=== STARTING MARKET DISPATCH SIMULATION ===")

    # 1. Configure System
    repos = create_repos("json", data_dir)
    dispatcher = MarketDispatcher(
        repos,
        policy=policy_from_env(),
        batching_policy=batching_policy_from_env(),
    )
    tenants = tenants_in_market(repos.tenants.find_all(), market_id)
    print(f"Loaded {len(repos.orders.find_all())} Orders and {len(tenants)} Tenants.\n")

    rows = []
    start = utc_now()

    # 2. Tick loop
    for tick in range(ticks):
        now = start + timedelta(minutes=tick * tick_minutes)
        print(f"--- Tick {tick+1} ({now:%H:%M}) ---")

        triggered = dispatcher.run_fallback(market_id, now=now)
        result = dispatcher.propose_batches(market_id, now=now)
        queue_size = sum(len(b) for b in result.batches) + len(result.unbatched_orders)
        print(f"  Fallback: {len(triggered)} | Queue: {queue_size} | Batches: {len(result.batches)}")

        jobs = repos.delivery_jobs.find_all()
        for batch in result.batches:
            job = draft_delivery_job(market_id, batch, tenants, policy=dispatcher.batching_policy, now=now)
            jobs.append(job)
            print(f"  Job {job.id.split('-')[1]} -> Orders: {job.order_ids}")
            rows.extend(
                {"tick": tick + 1, "job_id": job.id, "order_id": order.id, "tenant_id": order.tenant_id,
                 "ready_at": order.ready_at, "status": order.status.value}
                for order in batch
            )
        for order in result.unbatched_orders:
            rows.append({"tick": tick + 1, "job_id": None, "order_id": order.id, "tenant_id": order.tenant_id,
                         "ready_at": order.ready_at, "status": order.status.value})
        repos.delivery_jobs.set_all(jobs)

    # 3. Report
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "dispatch_results.csv")
    df = pd.DataFrame(rows, columns=["tick", "job_id", "order_id", "tenant_id", "ready_at", "status"])
    df.to_csv(output_path, index=False)

    print("\n=== SIMULATION COMPLETE ===")
    if not df.empty:
        print(f"Orders in jobs: {df['job_id'].notna().sum()} / {len(df)}")
        print(f"Ready orders offered: {(df['status'] == OrderStatus.READY.value).sum()}")
    print(f"Results written to '{output_path}'.")

if __name__ == "__main__":
    run_simulation()
