"""Base types for instance discovery."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# An instance record is a plain str -> str mapping
InstanceRecord = Dict[str, str]

APPLICATION_PLATFORM = "application.platform"
APPLICATION_TYPE = "application.type"
APPLICATION_KEY = "application.key"
INSTANCE_URI = "instance.uri"
INSTANCE_KEY = "instance.key"
CLIENT_VERSION = "snapshot.client.version"

REQUIRED_KEYS = (
    APPLICATION_PLATFORM,
    APPLICATION_TYPE,
    APPLICATION_KEY,
    INSTANCE_URI,
    INSTANCE_KEY,
)


class Platform(str, Enum):
    """Runtime families the agent knows how to scan."""
    JAVA = "java"


class ApplicationType(str, Enum):
    """Functional categories of an installed application."""
    WEB = "web"
    SERVICE = "service"
    BATCH = "batch"


class DiagnosticKind(str, Enum):
    DUPLICATE_INSTANCE_KEY = "duplicate_instance_key"
    INVALID_DECLARED_RECORD = "invalid_declared_record"
    UNREADABLE_FILE = "unreadable_file"
    UNREADABLE_DIRECTORY = "unreadable_directory"
    STEP_FAILED = "step_failed"
    PUBLISH_FAILED = "publish_failed"


@dataclass(frozen=True)
class DiagnosticEvent:
    """A non-fatal problem observed during a run."""
    kind: DiagnosticKind
    message: str
    instance_uri: Optional[str] = None


@dataclass
class Diagnostics:
    """Collects diagnostic events for a single run."""
    events: List[DiagnosticEvent] = field(default_factory=list)

    def report(self, kind: DiagnosticKind, message: str, instance_uri: Optional[str] = None) -> DiagnosticEvent:
        event = DiagnosticEvent(kind=kind, message=message, instance_uri=instance_uri)
        self.events.append(event)
        logger.warning(f"{kind.value}: {message}")
        return event

    def of_kind(self, kind: DiagnosticKind) -> List[DiagnosticEvent]:
        return [e for e in self.events if e.kind == kind]

    def __len__(self) -> int:
        return len(self.events)


@dataclass
class DiscoveryResult:
    """Result of the discovery and reconciliation phase."""
    discovered: List[InstanceRecord] = field(default_factory=list)
    declared: List[InstanceRecord] = field(default_factory=list)
    ignore_list: List[str] = field(default_factory=list)
    canonical: List[InstanceRecord] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
