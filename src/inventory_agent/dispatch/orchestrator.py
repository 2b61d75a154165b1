"""
Dispatch Orchestrator

Runs the producer steps for each reconciled instance and publishes every
payload they return. A failing step or payload is recorded and skipped;
the remaining steps and instances still run.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..discovery.base import (
    APPLICATION_PLATFORM,
    APPLICATION_TYPE,
    CLIENT_VERSION,
    INSTANCE_URI,
    DiagnosticKind,
    Diagnostics,
    InstanceRecord,
)
from ..producers import Producer, SnapshotPayload
from ..publishers import PublishConfig, Publisher
from .steps import DISPATCH_TABLE, DispatchKey, Step, steps_for

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_VERSION = "0.0.0"
VERSION_MARKER = Path(__file__).resolve().parent.parent / "VERSION"


def read_client_version(marker: Optional[Union[str, Path]] = None) -> str:
    """Version string from the marker file next to the agent, or the default."""
    path = Path(marker) if marker else VERSION_MARKER
    try:
        version = path.read_text(encoding="utf-8").strip()
    except OSError:
        logger.debug(f"No version marker at {path}, using {DEFAULT_CLIENT_VERSION}")
        return DEFAULT_CLIENT_VERSION
    return version or DEFAULT_CLIENT_VERSION


@dataclass
class DispatchReport:
    """Outcome of dispatching one instance."""
    instance_uri: str
    steps_run: List[str] = field(default_factory=list)
    payloads_published: int = 0
    publish_failures: int = 0
    step_failures: List[str] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return self.publish_failures + len(self.step_failures)

    @property
    def ok(self) -> bool:
        return self.failures == 0


class Dispatcher:
    """Routes instances through the dispatch table."""

    def __init__(
        self,
        publisher: Publisher,
        publish_config: PublishConfig,
        producers: Mapping[str, Producer],
        client_version: str = DEFAULT_CLIENT_VERSION,
        table: Optional[Dict[DispatchKey, Tuple[Step, ...]]] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.publisher = publisher
        self.publish_config = publish_config
        self.producers = producers
        self.client_version = client_version
        self.table = table if table is not None else DISPATCH_TABLE
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def annotate(self, record: InstanceRecord) -> InstanceRecord:
        """Copy of record stamped with the client version."""
        annotated = dict(record)
        annotated[CLIENT_VERSION] = self.client_version
        return annotated

    async def dispatch(self, record: InstanceRecord) -> DispatchReport:
        """
        Run every step for the instance's platform and type.

        Unknown platform/type pairs are a silent no-op.
        """
        instance = self.annotate(record)
        uri = instance[INSTANCE_URI]
        report = DispatchReport(instance_uri=uri)

        steps = steps_for(instance.get(APPLICATION_PLATFORM), instance.get(APPLICATION_TYPE), self.table)
        if not steps:
            logger.debug(
                f"No dispatch steps for {instance.get(APPLICATION_PLATFORM)}/{instance.get(APPLICATION_TYPE)} ({uri})"
            )
            return report

        logger.info(f"Dispatching {uri} ({len(steps)} steps)")
        for step in steps:
            report.steps_run.append(step.producer)
            try:
                payloads = self._produce(step, instance)
            except Exception as e:
                report.step_failures.append(step.producer)
                self.diagnostics.report(DiagnosticKind.STEP_FAILED, f"{step.producer} failed for {uri}: {e}", uri)
                logger.debug(f"{step.producer} traceback", exc_info=True)
                continue

            for payload in payloads:
                if await self._publish(payload):
                    report.payloads_published += 1
                else:
                    report.publish_failures += 1
                    self.diagnostics.report(
                        DiagnosticKind.PUBLISH_FAILED, f"Publishing {payload.kind} {payload.name} failed", uri
                    )

        logger.info(
            f"Dispatched {uri}: {report.payloads_published} published, {report.failures} failure(s)"
        )
        return report

    def _produce(self, step: Step, instance: InstanceRecord) -> List[SnapshotPayload]:
        producer = self.producers.get(step.producer)
        if producer is None:
            raise LookupError(f"no producer registered for {step.producer}")
        result = producer(instance)
        if step.single:
            payloads = [result]
        elif isinstance(result, Iterable) and not isinstance(result, (str, bytes, dict, SnapshotPayload)):
            payloads = list(result)
        else:
            raise TypeError(f"{step.producer} returned {type(result).__name__}, expected a list of payloads")

        for payload in payloads:
            if not isinstance(payload, SnapshotPayload):
                raise TypeError(f"{step.producer} returned {type(payload).__name__}, expected SnapshotPayload")
        return payloads

    async def _publish(self, payload: SnapshotPayload) -> bool:
        try:
            return bool(await self.publisher.publish(payload, self.publish_config))
        except Exception as e:
            logger.error(f"Publisher error: {e!r}")
            logger.debug("publisher traceback", exc_info=True)
            return False
