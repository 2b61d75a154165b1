"""
Agent Configuration

YAML configuration file with discovery, agent, publish and logging sections.
Missing sections and keys fall back to the defaults below.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigError
from .publishers import PublishConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "agent_config.yaml"
DEFAULT_DISCOVERY_ROOT = "/opt/apps"
DEFAULT_DECLARED_DIR = "/etc/inventory-agent/declared"
DEFAULT_IGNORE_FILE = "/etc/inventory-agent/ignore.list"


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


@dataclass
class AgentConfig:
    """Settings for one agent run."""
    discovery_root: str = DEFAULT_DISCOVERY_ROOT
    declared_dir: Optional[str] = DEFAULT_DECLARED_DIR
    ignore_file: Optional[str] = DEFAULT_IGNORE_FILE
    version_file: Optional[str] = None
    indexed_reconcile: bool = True
    publish: PublishConfig = field(default_factory=PublishConfig)
    log_level: str = "info"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AgentConfig":
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping")

        discovery = _section(data, "discovery")
        agent = _section(data, "agent")
        publish = _section(data, "publish")
        logging_section = _section(data, "logging")

        defaults = PublishConfig()
        try:
            timeout = int(publish.get("timeout", defaults.timeout))
        except (TypeError, ValueError):
            raise ConfigError(f"publish.timeout must be an integer, got {publish.get('timeout')!r}") from None

        return cls(
            discovery_root=str(discovery.get("root") or DEFAULT_DISCOVERY_ROOT),
            declared_dir=discovery.get("declared_dir", DEFAULT_DECLARED_DIR),
            ignore_file=discovery.get("ignore_file", DEFAULT_IGNORE_FILE),
            version_file=agent.get("version_file"),
            indexed_reconcile=bool(agent.get("indexed_reconcile", True)),
            publish=PublishConfig(
                provider=str(publish.get("provider") or defaults.provider),
                destination=str(publish.get("destination") or defaults.destination),
                api_key=publish.get("api_key"),
                timeout=timeout,
            ),
            log_level=str(logging_section.get("level") or "info"),
            log_file=logging_section.get("file"),
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AgentConfig":
        """Load configuration from a YAML file"""
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        logger.debug(f"Loaded config from {config_path}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discovery": {
                "root": self.discovery_root,
                "declared_dir": self.declared_dir,
                "ignore_file": self.ignore_file,
            },
            "agent": {
                "version_file": self.version_file,
                "indexed_reconcile": self.indexed_reconcile,
            },
            "publish": {
                "provider": self.publish.provider,
                "destination": self.publish.destination,
                "api_key": self.publish.api_key,
                "timeout": self.publish.timeout,
            },
            "logging": {
                "level": self.log_level,
                "file": self.log_file,
            },
        }

    def save(self, path: Union[str, Path]) -> Path:
        config_path = Path(path)
        with config_path.open("w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        return config_path
