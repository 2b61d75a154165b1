"""
Agent CLI

Command-line interface for the inventory agent.
"""

import asyncio
import logging
import sys
from typing import Optional

import click
import yaml

from .agent import InventoryAgent
from .config import DEFAULT_CONFIG_FILE, DEFAULT_DISCOVERY_ROOT, AgentConfig
from .dispatch.orchestrator import read_client_version
from .errors import ConfigError
from .host import detect_host
from .version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "info", log_file: Optional[str] = None):
    """Configure root logging from the agent config"""
    handlers = [logging.StreamHandler()]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            click.echo(f"Cannot open log file {log_file}: {e}", err=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def _load_config(config_file: str) -> AgentConfig:
    try:
        config = AgentConfig.load(config_file)
    except ConfigError as e:
        click.echo(str(e), err=True)
        click.echo("Run 'inventory-agent configure' first", err=True)
        sys.exit(1)
    configure_logging(config.log_level, config.log_file)
    return config


@click.group()
def cli():
    """Host Inventory Agent"""
    pass


@cli.command()
@click.option("--discovery-root", default=DEFAULT_DISCOVERY_ROOT, help="Directory holding installed applications")
@click.option("--declared-dir", default=None, help="Directory of declared inventory files")
@click.option("--ignore-file", default=None, help="File listing instance URIs to ignore")
@click.option("--provider", type=click.Choice(["file", "http", "log"]), default="file", help="Publish provider")
@click.option("--destination", default=None, help="Publish destination (directory or URL)")
@click.option("--api-key", default="", help="API key for the http provider (optional)")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]), default="info", help="Log level")
@click.option("--config-file", default=DEFAULT_CONFIG_FILE, help="Config file path")
def configure(
    discovery_root: str,
    declared_dir: Optional[str],
    ignore_file: Optional[str],
    provider: str,
    destination: Optional[str],
    api_key: str,
    log_level: str,
    config_file: str,
):
    """Write the agent configuration"""
    config = AgentConfig(discovery_root=discovery_root)
    if declared_dir:
        config.declared_dir = declared_dir
    if ignore_file:
        config.ignore_file = ignore_file
    config.publish.provider = provider
    if destination:
        config.publish.destination = destination
    config.publish.api_key = api_key if api_key else None
    config.log_level = log_level

    config_path = config.save(config_file)
    click.echo(f"Configuration saved to {config_path}")


@cli.command()
@click.option("--config-file", default=DEFAULT_CONFIG_FILE, help="Config file path")
@click.option("--all", "show_all", is_flag=True, help="Also show discovery and declaration counts")
def discover(config_file: str, show_all: bool):
    """List the reconciled instances without publishing"""
    config = _load_config(config_file)
    result = InventoryAgent(config).discover()

    if show_all:
        click.echo(f"# discovered: {len(result.discovered)}")
        click.echo(f"# declared: {len(result.declared)}")
        click.echo(f"# ignored: {len(result.ignore_list)}")
        click.echo(f"# diagnostics: {len(result.diagnostics)}")
    click.echo(yaml.safe_dump({"instances": result.canonical}, default_flow_style=False, sort_keys=False), nl=False)


@cli.command()
@click.option("--config-file", default=DEFAULT_CONFIG_FILE, help="Config file path")
@click.option("--strict", is_flag=True, help="Exit with status 2 if any step or publish failed")
def run(config_file: str, strict: bool):
    """Discover instances and publish their snapshots"""
    config = _load_config(config_file)
    agent = InventoryAgent(config)

    try:
        report = asyncio.run(agent.run())
    except ConfigError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    click.echo(f"Instances: {len(report.canonical)}")
    click.echo(f"Payloads published: {report.payloads_published}")
    click.echo(f"Failures: {report.failures}")
    for uri in report.failed_instances:
        click.echo(f"  failed: {uri}")

    if strict and report.failures:
        sys.exit(2)


@cli.command()
@click.option("--config-file", default=DEFAULT_CONFIG_FILE, help="Config file path")
def version(config_file: str):
    """Show agent version and host information"""
    version_file = None
    try:
        version_file = AgentConfig.load(config_file).version_file
    except ConfigError as e:
        logger.debug(f"No config for version marker: {e}")

    host = detect_host()
    click.echo("Inventory Agent")
    click.echo("=" * 50)
    click.echo(f"Package Version: {__version__}")
    click.echo(f"Client Version: {read_client_version(version_file)}")
    click.echo(f"Hostname: {host.hostname}")
    click.echo(f"Platform: {host.system} {host.release} ({host.architecture})")


if __name__ == "__main__":
    cli()
