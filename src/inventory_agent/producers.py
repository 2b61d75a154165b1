"""
Snapshot Producers

Turn a reconciled instance record into snapshot payloads. Every producer
reads the live instance directory named by instance.uri. File producers
return the matching files in name order; document producers build a single
payload from the record itself.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .discovery.base import (
    APPLICATION_KEY,
    APPLICATION_TYPE,
    INSTANCE_KEY,
    INSTANCE_URI,
    InstanceRecord,
)
from .dispatch import steps
from .host import detect_host

logger = logging.getLogger(__name__)


@dataclass
class SnapshotPayload:
    """A single unit handed to a publisher."""
    kind: str  # producer name, e.g. "property-file"
    name: str
    instance_uri: str
    instance_key: str
    source_path: Optional[Path] = None
    content: Optional[bytes] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.source_path is None:
            return b""
        return self.source_path.read_bytes()


Producer = Callable[[InstanceRecord], Union[SnapshotPayload, List[SnapshotPayload]]]

ARCHIVE_PATTERNS = ("*.jar", "*.war", "*.ear")
CERTIFICATE_PATTERNS = ("*.pem", "*.crt", "*.cer", "*.jks", "*.p12")
CONTEXT_FILES = ("conf/context.xml", "conf/server.xml", "META-INF/context.xml", "WEB-INF/web.xml")
RUN_PARAM_PREFIXES = ("service.", "application.", "instance.", "snapshot.")


def _instance_dir(record: InstanceRecord) -> Path:
    return Path(record[INSTANCE_URI])


def _payload(kind: str, record: InstanceRecord, name: str, **kwargs: Any) -> SnapshotPayload:
    return SnapshotPayload(
        kind=kind,
        name=name,
        instance_uri=record[INSTANCE_URI],
        instance_key=record.get(INSTANCE_KEY, ""),
        **kwargs,
    )


def _glob(directories: Iterable[Path], patterns: Iterable[str]) -> List[Path]:
    """Non-recursive match of patterns in each existing directory."""
    found = {}
    for directory in directories:
        if not directory.is_dir():
            continue
        for pattern in patterns:
            for path in directory.glob(pattern):
                if path.is_file():
                    found[path] = None
    return sorted(found, key=lambda p: str(p))


def _file_payloads(kind: str, record: InstanceRecord, paths: Iterable[Path], **metadata: Any) -> List[SnapshotPayload]:
    root = _instance_dir(record)
    payloads = []
    for path in paths:
        try:
            name = path.relative_to(root).as_posix()
        except ValueError:
            name = path.name
        payloads.append(_payload(kind, record, name, source_path=path, metadata=dict(metadata)))
    return payloads


def _is_secure_properties(path: Path) -> bool:
    return path.name.endswith(".secure.properties") or path.name.startswith("secure")


def produce_container_context(record: InstanceRecord) -> List[SnapshotPayload]:
    """Web container context descriptors."""
    root = _instance_dir(record)
    paths = [root / rel for rel in CONTEXT_FILES if (root / rel).is_file()]
    return _file_payloads(steps.CONTAINER_CONTEXT, record, paths)


def produce_service_run_params(record: InstanceRecord) -> SnapshotPayload:
    """Run parameters of the service as a JSON document."""
    params = {k: v for k, v in sorted(record.items()) if k.startswith(RUN_PARAM_PREFIXES)}
    content = json.dumps(params, indent=2, sort_keys=True).encode("utf-8")
    return _payload(steps.SERVICE_RUN_PARAMS, record, "service-run-params.json", content=content)


def produce_host_service_descriptor(record: InstanceRecord) -> SnapshotPayload:
    """Describes the service as registered on this host."""
    descriptor = detect_host().to_dict()
    descriptor.update({
        "service_name": record.get("service.name") or record.get(INSTANCE_KEY, ""),
        "application_key": record.get(APPLICATION_KEY, ""),
        "application_type": record.get(APPLICATION_TYPE, ""),
        "instance_uri": record[INSTANCE_URI],
    })
    content = json.dumps(descriptor, indent=2, sort_keys=True).encode("utf-8")
    return _payload(steps.HOST_SERVICE_DESCRIPTOR, record, "host-service.json", content=content)


def produce_code_archives(record: InstanceRecord) -> List[SnapshotPayload]:
    root = _instance_dir(record)
    return _file_payloads(steps.CODE_ARCHIVE, record, _glob([root, root / "lib"], ARCHIVE_PATTERNS))


def produce_property_files(record: InstanceRecord) -> List[SnapshotPayload]:
    root = _instance_dir(record)
    paths = [p for p in _glob([root, root / "conf"], ["*.properties"]) if not _is_secure_properties(p)]
    return _file_payloads(steps.PROPERTY_FILE, record, paths)


def produce_secure_property_files(record: InstanceRecord) -> List[SnapshotPayload]:
    """Property files holding credentials; flagged sensitive for the publisher."""
    root = _instance_dir(record)
    paths = [p for p in _glob([root, root / "conf"], ["*.properties"]) if _is_secure_properties(p)]
    paths.extend(_glob([root / "secure"], ["*"]))
    return _file_payloads(steps.SECURE_PROPERTY_FILE, record, paths, sensitive=True)


def produce_code_property_files(record: InstanceRecord) -> List[SnapshotPayload]:
    """Property files packaged with the code."""
    root = _instance_dir(record)
    return _file_payloads(
        steps.CODE_PROPERTY_FILE, record, _glob([root / "WEB-INF" / "classes", root / "classes"], ["*.properties"])
    )


def produce_run_params_file(record: InstanceRecord) -> SnapshotPayload:
    """The whole instance record rendered as a properties file."""
    lines = [f"{key}={value}" for key, value in sorted(record.items())]
    content = ("\n".join(lines) + "\n").encode("utf-8")
    return _payload(steps.RUN_PARAMS_FILE, record, "run.properties", content=content)


def produce_certificate_files(record: InstanceRecord) -> List[SnapshotPayload]:
    root = _instance_dir(record)
    return _file_payloads(
        steps.CERTIFICATE_FILE, record, _glob([root, root / "certs"], CERTIFICATE_PATTERNS), sensitive=True
    )


DEFAULT_PRODUCERS: Dict[str, Producer] = {
    steps.CONTAINER_CONTEXT: produce_container_context,
    steps.SERVICE_RUN_PARAMS: produce_service_run_params,
    steps.HOST_SERVICE_DESCRIPTOR: produce_host_service_descriptor,
    steps.CODE_ARCHIVE: produce_code_archives,
    steps.PROPERTY_FILE: produce_property_files,
    steps.SECURE_PROPERTY_FILE: produce_secure_property_files,
    steps.CODE_PROPERTY_FILE: produce_code_property_files,
    steps.RUN_PARAMS_FILE: produce_run_params_file,
    steps.CERTIFICATE_FILE: produce_certificate_files,
}
