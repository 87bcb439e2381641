"""External service client modules."""

from .alignment import AlignmentClient
from .ttl_cache import CoalescingTTLCache

__all__ = [
    "AlignmentClient",
    "CoalescingTTLCache",
]
