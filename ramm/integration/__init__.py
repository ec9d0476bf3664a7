"""
Imperative shell: oracle feeds, value transfer, events, deployment configs
"""

from .deploy_config import (
    AssetConfig,
    ConfigError,
    PoolDeploymentConfig,
    build_pool,
    load_deployment_config,
)
from .events import EventKind, EventLog, PoolEvent
from .interfaces import EventSink, OracleFeed, StaticOracleFeed, ValueTransfer
from .ledger import Ledger
from .pool_engine import RammPool

__all__ = [
    "AssetConfig",
    "ConfigError",
    "PoolDeploymentConfig",
    "build_pool",
    "load_deployment_config",
    "EventKind",
    "EventLog",
    "PoolEvent",
    "EventSink",
    "OracleFeed",
    "StaticOracleFeed",
    "ValueTransfer",
    "Ledger",
    "RammPool",
]
