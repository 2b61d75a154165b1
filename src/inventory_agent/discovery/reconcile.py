"""
Reconciliation of discovered and declared instances.

Discovery decides which instances exist on this host; declarations only
override the properties of instances that were discovered. For each
discovered record, the last declared record with the same instance.uri
replaces it, and the result is dropped if its instance.uri is ignored.
Declared records that match nothing are not included.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .base import INSTANCE_URI, InstanceRecord
from .ignore import is_ignored

logger = logging.getLogger(__name__)


def reconcile(
    discovered: Sequence[InstanceRecord],
    declared: Sequence[InstanceRecord],
    ignore_list: Optional[Iterable[str]] = None,
) -> List[InstanceRecord]:
    """Reference reconciliation, scanning declared once per discovered record."""
    ignore_list = list(ignore_list or [])
    canonical: List[InstanceRecord] = []

    for record in discovered:
        candidate = record
        for declared_record in declared:
            if declared_record.get(INSTANCE_URI) == record[INSTANCE_URI]:
                candidate = declared_record

        if is_ignored(ignore_list, candidate[INSTANCE_URI]):
            logger.info(f"Ignoring instance {candidate[INSTANCE_URI]}")
            continue
        canonical.append(candidate)

    return canonical


def index_declared(declared: Iterable[InstanceRecord]) -> Dict[str, InstanceRecord]:
    """Map instance.uri to declared record; later records replace earlier ones."""
    index: Dict[str, InstanceRecord] = {}
    for record in declared:
        uri = record.get(INSTANCE_URI)
        if uri is not None:
            index[uri] = record
    return index


def reconcile_indexed(
    discovered: Sequence[InstanceRecord],
    declared: Sequence[InstanceRecord],
    ignore_list: Optional[Iterable[str]] = None,
) -> List[InstanceRecord]:
    """Same result as reconcile() using a uri index instead of a nested scan."""
    index = index_declared(declared)
    ignored = set(ignore_list or [])
    canonical: List[InstanceRecord] = []

    for record in discovered:
        candidate = index.get(record[INSTANCE_URI], record)
        if candidate[INSTANCE_URI] in ignored:
            logger.info(f"Ignoring instance {candidate[INSTANCE_URI]}")
            continue
        canonical.append(candidate)

    overridden = sum(1 for record in discovered if record[INSTANCE_URI] in index)
    logger.debug(f"Reconciled {len(discovered)} discovered instance(s), {overridden} overridden by declarations")
    return canonical
