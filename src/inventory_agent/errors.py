"""Agent exceptions."""


class InventoryAgentError(Exception):
    """Base class for agent errors."""


class ConfigError(InventoryAgentError):
    """The agent configuration is missing or invalid."""
