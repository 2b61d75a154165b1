"""Installation directory scanners.

Each scanner owns one well-known subdirectory of the discovery root and turns
every immediate subdirectory found there into an instance record. Scanners
run in a fixed order and accumulate into a single ordered list.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .base import (
    APPLICATION_KEY,
    APPLICATION_PLATFORM,
    APPLICATION_TYPE,
    INSTANCE_KEY,
    INSTANCE_URI,
    ApplicationType,
    DiagnosticKind,
    Diagnostics,
    InstanceRecord,
    Platform,
)

logger = logging.getLogger(__name__)


def set_once(
    record: InstanceRecord,
    key: str,
    value: str,
    diagnostics: Optional[Diagnostics] = None,
) -> bool:
    """
    Assign a key that must never be overwritten.

    A second assignment is reported as a duplicate key diagnostic and the
    existing value is kept.

    Returns:
        True if the value was assigned
    """
    if key in record:
        message = f"{key} already set to {record[key]!r} on {record.get(INSTANCE_URI)}, ignoring {value!r}"
        if diagnostics is not None:
            diagnostics.report(DiagnosticKind.DUPLICATE_INSTANCE_KEY, message, record.get(INSTANCE_URI))
        else:
            logger.warning(message)
        return False
    record[key] = value
    return True


@dataclass(frozen=True)
class PlatformScanner:
    """Scanner for one (platform, application type) directory convention."""
    platform: Platform
    application_type: ApplicationType
    convention: str  # subdirectory of the discovery root, e.g. "java/webapps"

    def category_dir(self, discovery_root: Union[str, Path]) -> Path:
        return Path(discovery_root) / self.convention

    def scan(
        self,
        discovery_root: Union[str, Path],
        existing: Sequence[InstanceRecord] = (),
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[InstanceRecord]:
        """
        Scan the category directory under discovery_root.

        Args:
            discovery_root: Root directory all conventions are resolved against
            existing: Records accumulated by earlier scanners, kept in order
            diagnostics: Collector for invariant violations

        Returns:
            existing records followed by one new record per subdirectory
        """
        records = list(existing)
        category = self.category_dir(discovery_root)

        if not category.is_dir():
            logger.debug(f"No {self.platform.value}/{self.application_type.value} instances: {category} not found")
            return records

        try:
            entries = sorted(category.iterdir(), key=lambda p: p.name)
        except OSError as e:
            message = f"Cannot list {category}: {e}"
            if diagnostics is not None:
                diagnostics.report(DiagnosticKind.UNREADABLE_DIRECTORY, message)
            else:
                logger.warning(message)
            return records

        found = 0
        for entry in entries:
            if not entry.is_dir():
                continue
            records.append(self._record_for(entry, diagnostics))
            found += 1

        logger.info(f"Found {found} {self.platform.value}/{self.application_type.value} instance(s) in {category}")
        return records

    def _record_for(self, directory: Path, diagnostics: Optional[Diagnostics]) -> InstanceRecord:
        name = directory.name
        record: InstanceRecord = {
            APPLICATION_PLATFORM: self.platform.value,
            APPLICATION_TYPE: self.application_type.value,
            APPLICATION_KEY: name,
            INSTANCE_URI: os.path.abspath(str(directory)),
        }
        set_once(record, INSTANCE_KEY, name, diagnostics)
        return record


# Order matters: records are accumulated web, then service, then batch
DEFAULT_SCANNERS = (
    PlatformScanner(Platform.JAVA, ApplicationType.WEB, "java/webapps"),
    PlatformScanner(Platform.JAVA, ApplicationType.SERVICE, "java/services"),
    PlatformScanner(Platform.JAVA, ApplicationType.BATCH, "java/batch"),
)


def discover_instances(
    discovery_root: Union[str, Path],
    scanners: Iterable[PlatformScanner] = DEFAULT_SCANNERS,
    diagnostics: Optional[Diagnostics] = None,
) -> List[InstanceRecord]:
    """Run every scanner in order over the same discovery root."""
    records: List[InstanceRecord] = []
    for scanner in scanners:
        records = scanner.scan(discovery_root, records, diagnostics)
    return records
