"""
Inventory Agent

One run: scan the discovery root, reconcile against the declared inventory
and ignore list, then dispatch every canonical instance in order.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from .config import AgentConfig
from .discovery import (
    DEFAULT_SCANNERS,
    DiagnosticKind,
    Diagnostics,
    DiscoveryResult,
    InstanceRecord,
    PlatformScanner,
    discover_instances,
    load_declared_inventory,
    load_ignore_list,
    reconcile,
    reconcile_indexed,
)
from .discovery.base import INSTANCE_URI
from .dispatch.orchestrator import DispatchReport, Dispatcher, read_client_version
from .producers import DEFAULT_PRODUCERS, Producer
from .publishers import Publisher, build_publisher

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Summary of a full agent run."""
    canonical: List[InstanceRecord] = field(default_factory=list)
    reports: List[DispatchReport] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    client_version: str = "0.0.0"

    @property
    def payloads_published(self) -> int:
        return sum(r.payloads_published for r in self.reports)

    @property
    def failures(self) -> int:
        return sum(r.failures for r in self.reports)

    @property
    def failed_instances(self) -> List[str]:
        return [r.instance_uri for r in self.reports if not r.ok]


class InventoryAgent:
    """Discovers, reconciles and dispatches the instances on this host."""

    def __init__(
        self,
        config: AgentConfig,
        scanners: Sequence[PlatformScanner] = DEFAULT_SCANNERS,
        producers: Optional[Mapping[str, Producer]] = None,
        publisher: Optional[Publisher] = None,
    ):
        self.config = config
        self.scanners = scanners
        self.producers = producers if producers is not None else DEFAULT_PRODUCERS
        self.publisher = publisher

    def discover(self, diagnostics: Optional[Diagnostics] = None) -> DiscoveryResult:
        """Build the canonical instance list."""
        result = DiscoveryResult(diagnostics=diagnostics if diagnostics is not None else Diagnostics())

        result.discovered = discover_instances(self.config.discovery_root, self.scanners, result.diagnostics)
        result.declared = load_declared_inventory(self.config.declared_dir, result.diagnostics)
        result.ignore_list = load_ignore_list(self.config.ignore_file)

        merge = reconcile_indexed if self.config.indexed_reconcile else reconcile
        result.canonical = merge(result.discovered, result.declared, result.ignore_list)

        logger.info(
            f"Discovered {len(result.discovered)} instance(s) under {self.config.discovery_root}, "
            f"{len(result.canonical)} after reconciliation"
        )
        return result

    async def run(self) -> RunReport:
        """Discover and dispatch every canonical instance."""
        discovery = self.discover()
        client_version = read_client_version(self.config.version_file)
        report = RunReport(
            canonical=discovery.canonical,
            diagnostics=discovery.diagnostics,
            client_version=client_version,
        )

        if not discovery.canonical:
            logger.info("No instances to dispatch")
            return report

        publisher = self.publisher or build_publisher(self.config.publish)
        dispatcher = Dispatcher(
            publisher=publisher,
            publish_config=self.config.publish,
            producers=self.producers,
            client_version=client_version,
            diagnostics=report.diagnostics,
        )

        try:
            for record in discovery.canonical:
                report.reports.append(await self._dispatch_one(dispatcher, record, report.diagnostics))
        finally:
            if self.publisher is None:
                await publisher.close()

        if report.failures:
            logger.warning(f"Run finished with {report.failures} failure(s) on {len(report.failed_instances)} instance(s)")
        else:
            logger.info(f"Run finished: {report.payloads_published} payload(s) published")
        return report

    async def _dispatch_one(self, dispatcher: Dispatcher, record: InstanceRecord, diagnostics: Diagnostics) -> DispatchReport:
        uri = record.get(INSTANCE_URI, "")
        try:
            return await dispatcher.dispatch(record)
        except Exception as e:
            diagnostics.report(DiagnosticKind.STEP_FAILED, f"Dispatch of {uri} failed: {e!r}", uri)
            logger.debug("dispatch traceback", exc_info=True)
            return DispatchReport(instance_uri=uri, step_failures=["dispatch"])
