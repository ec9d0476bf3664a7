"""RAMM: oracle-priced multi-asset automated market maker engine."""

# core first: ramm.state.pool imports ramm.core.errors, and the core modules
# import the state types back.
from . import core, state

__version__ = "0.1.0"
