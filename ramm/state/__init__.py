"""
State management for RAMM pools
"""

from .pool import AssetSlot, PoolState
from .snapshot import compute_state_root, state_from_dict, state_to_dict

__all__ = [
    "AssetSlot",
    "PoolState",
    "compute_state_root",
    "state_from_dict",
    "state_to_dict",
]
