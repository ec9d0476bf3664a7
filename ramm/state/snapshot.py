"""Pool snapshot serialization and state root.

Round-trip property (tested): ``state_from_dict(state_to_dict(s)) == s``.

The state root is a domain-separated SHA-256 over the canonical JSON of the
snapshot. Two pools with the same logical state always hash identically.
"""

from __future__ import annotations

from typing import Any, Mapping

from .canonical import hash_canonical
from .pool import AssetSlot, PoolState

STATE_ROOT_VERSION = 1

SLOT_FIELD_NAMES: tuple[str, ...] = tuple(AssetSlot.__dataclass_fields__)
POOL_FIELD_NAMES: tuple[str, ...] = tuple(
    name for name in PoolState.__dataclass_fields__ if name != "assets"
)


def slot_to_dict(slot: AssetSlot) -> dict[str, Any]:
    return {name: getattr(slot, name) for name in SLOT_FIELD_NAMES}


def state_to_dict(state: PoolState) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(state, name) for name in POOL_FIELD_NAMES}
    out["assets"] = [slot_to_dict(slot) for slot in state.assets]
    return out


def _slot_from_dict(d: Mapping[str, Any]) -> AssetSlot:
    kwargs: dict[str, Any] = {}
    for name in SLOT_FIELD_NAMES:
        val = d[name]
        if isinstance(val, bool) or isinstance(val, str):
            kwargs[name] = val
        elif isinstance(val, int):
            kwargs[name] = int(val)
        else:
            raise TypeError(f"slot field {name!r} must be bool|int|str, got {type(val).__name__}")
    return AssetSlot(**kwargs)


def state_from_dict(d: Mapping[str, Any]) -> PoolState:
    """Rebuild a PoolState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {name: d[name] for name in POOL_FIELD_NAMES}
    kwargs["assets"] = tuple(_slot_from_dict(item) for item in d["assets"])
    return PoolState(**kwargs)


def compute_state_root(state: PoolState) -> str:
    return hash_canonical("PoolStateRoot", state_to_dict(state), version=STATE_ROOT_VERSION)
