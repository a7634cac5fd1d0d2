"""
Purpose: Central configuration for batching behavior (single source of truth).
What it does:

Stores all tunable thresholds/caps:

BATCH_WINDOW_MINUTES = 7

MAX_BATCH_SIZE = 3

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class BatchingPolicy:
    """
    Central configuration for order batching.

    Notes:
    - the batch window only constrains RESTAURANT orders (same kitchen, ready
      times close together). SHOP/SERVICE pickups batch freely.
    - max_batch_size caps how many orders group_into_batches puts on one trip.
    """

    # --- Readiness window ---
    # Two restaurant orders with ready_at at most this far apart share a trip.
    batch_window_minutes: float = 7

    # --- Batch size caps ---
    max_batch_size: int = 3

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup if you want.
        """
        if self.batch_window_minutes < 0:
            raise ValueError("batch_window_minutes must be >= 0")

        if self.max_batch_size < 2:
            raise ValueError("max_batch_size must be >= 2")


def default_policy() -> BatchingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = BatchingPolicy()
    p.validate()
    return p


def peak_policy() -> BatchingPolicy:
    """
    More aggressive batching during lunch/dinner peaks.
    """
    p = BatchingPolicy(batch_window_minutes=10, max_batch_size=4)
    p.validate()
    return p


def policy_from_env() -> BatchingPolicy:
    """
    Default policy with DISPATCH_BATCH_WINDOW_MINUTES / DISPATCH_MAX_BATCH_SIZE
    overrides (.env is loaded first).
    """
    load_dotenv()
    overrides = {}
    for env_name, field_name, cast in (
        ("DISPATCH_BATCH_WINDOW_MINUTES", "batch_window_minutes", float),
        ("DISPATCH_MAX_BATCH_SIZE", "max_batch_size", int),
    ):
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = cast(raw)
        except ValueError:
            raise ValueError(f"{env_name} must be a number, got {raw!r}") from None

    p = BatchingPolicy(**overrides)
    p.validate()
    return p
