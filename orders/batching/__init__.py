"""
Batching subpackage for the Orders domain.

Public API:
- can_batch
- group_into_batches
- draft_delivery_job
- BatchResult
- BatchingPolicy
"""

from .compatibility import can_batch
from .engine import BatchResult, draft_delivery_job, group_into_batches
from .policy import BatchingPolicy, default_policy, peak_policy, policy_from_env

__all__ = [
    "can_batch",
    "group_into_batches",
    "draft_delivery_job",
    "BatchResult",
    "BatchingPolicy",
    "default_policy",
    "peak_policy",
    "policy_from_env",
]
