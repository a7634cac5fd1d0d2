#Expose the high-level pipeline pieces:
#Eligibility gate (hard rules)
#Fallback evaluator (TENANT -> MARKET handoff)
#Dispatch queue builder
#Per-market dispatcher (the "one call" entry point)

from .eligibility import is_eligible_for_market_dispatch
from .fallback import apply_fallback, evaluate_fallback
from .queue import build_dispatch_queue, dispatch_sort_key
from .dispatcher import MarketDispatcher #serializes work per market
from .policy import DispatchPolicy, default_policy, policy_from_env

__all__ = [
    "is_eligible_for_market_dispatch",
    "apply_fallback",
    "evaluate_fallback",
    "build_dispatch_queue",
    "dispatch_sort_key",
    "MarketDispatcher",
    "DispatchPolicy",
    "default_policy",
    "policy_from_env",
]
