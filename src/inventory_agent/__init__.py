"""
Host Inventory Agent

Discovers installed application instances, reconciles them with the
declared inventory and publishes their configuration snapshots.
"""

from .agent import InventoryAgent, RunReport
from .config import AgentConfig
from .errors import ConfigError, InventoryAgentError
from .version import __version__

__all__ = [
    "InventoryAgent",
    "RunReport",
    "AgentConfig",
    "ConfigError",
    "InventoryAgentError",
    "__version__",
]
