"""
Purpose: Central configuration for market dispatch timing (single source of truth).
What it does:

Stores all tunable time windows used by eligibility and fallback:

NEAR_READY_WINDOW_MINUTES = 10

FALLBACK_SHOP_SERVICE_MINUTES = 5

FALLBACK_RESTAURANT_READY_MINUTES = 5

FALLBACK_RESTAURANT_NEAR_READY_MINUTES = 7

A DispatchPolicy object is passed explicitly into every predicate so a market
(or a tenant, later) can run with its own windows.

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Dict, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Time windows (minutes) for market courier dispatch.

    Notes:
    - 'near ready' only matters for RESTAURANT orders: an order whose ready_at
      is at most this many minutes away may already be offered to a courier.
    - fallback windows are measured from order creation.
    """

    # --- Eligibility ---
    near_ready_window_minutes: float = 10

    # --- Fallback (TENANT -> MARKET) ---
    # SHOP / SERVICE: unconditional on status once this much time has passed.
    fallback_shop_service_minutes: float = 5

    # RESTAURANT, order already READY.
    fallback_restaurant_ready_minutes: float = 5

    # RESTAURANT, order inside the near-ready window but not READY yet.
    fallback_restaurant_near_ready_minutes: float = 7

    # --- Intake ---
    # Used when neither the order nor the tenant carries a prep time.
    default_prep_time_min: int = 30

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup if you want.
        """
        if self.near_ready_window_minutes < 0:
            raise ValueError("near_ready_window_minutes must be >= 0")

        if self.fallback_shop_service_minutes < 0:
            raise ValueError("fallback_shop_service_minutes must be >= 0")

        if self.fallback_restaurant_ready_minutes < 0 or self.fallback_restaurant_near_ready_minutes < 0:
            raise ValueError("restaurant fallback minutes must be >= 0")

        if self.default_prep_time_min <= 0:
            raise ValueError("default_prep_time_min must be > 0")


# env var -> policy field
ENV_OVERRIDES: Dict[str, str] = {
    "DISPATCH_NEAR_READY_WINDOW_MINUTES": "near_ready_window_minutes",
    "DISPATCH_FALLBACK_SHOP_SERVICE_MINUTES": "fallback_shop_service_minutes",
    "DISPATCH_FALLBACK_RESTAURANT_READY_MINUTES": "fallback_restaurant_ready_minutes",
    "DISPATCH_FALLBACK_RESTAURANT_NEAR_READY_MINUTES": "fallback_restaurant_near_ready_minutes",
    "DISPATCH_DEFAULT_PREP_TIME_MIN": "default_prep_time_min",
}


def read_env_number(name: str, cast=float) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def default_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy()
    p.validate()
    return p


def policy_from_env() -> DispatchPolicy:
    """
    Default policy with overrides from the environment (.env is loaded first).
    """
    load_dotenv()
    casts = {f.name: (int if f.type in ("int", int) else float) for f in fields(DispatchPolicy)}
    overrides = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = read_env_number(env_name, casts[field_name])
        if value is not None:
            overrides[field_name] = value

    p = DispatchPolicy(**overrides)
    p.validate()
    return p
