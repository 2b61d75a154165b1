"""
Dispatch table.

Maps (application.platform, application.type) to the ordered steps run for
an instance. A step names a producer and says whether it yields exactly one
payload or a sequence of them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from ..discovery.base import ApplicationType, Platform


class Cardinality(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


CONTAINER_CONTEXT = "container-context"
SERVICE_RUN_PARAMS = "service-run-params"
HOST_SERVICE_DESCRIPTOR = "host-service-descriptor"
CODE_ARCHIVE = "code-archive"
PROPERTY_FILE = "property-file"
SECURE_PROPERTY_FILE = "secure-property-file"
CODE_PROPERTY_FILE = "code-property-file"
RUN_PARAMS_FILE = "run-params-file"
CERTIFICATE_FILE = "certificate-file"


@dataclass(frozen=True)
class Step:
    """One producer call followed by publishing its payloads."""
    producer: str
    cardinality: Cardinality = Cardinality.MULTI

    @property
    def single(self) -> bool:
        return self.cardinality == Cardinality.SINGLE


def _single(producer: str) -> Step:
    return Step(producer, Cardinality.SINGLE)


def _multi(producer: str) -> Step:
    return Step(producer, Cardinality.MULTI)


DispatchKey = Tuple[str, str]

DISPATCH_TABLE: Dict[DispatchKey, Tuple[Step, ...]] = {
    (Platform.JAVA.value, ApplicationType.WEB.value): (
        _multi(CONTAINER_CONTEXT),
        _single(SERVICE_RUN_PARAMS),
        _single(HOST_SERVICE_DESCRIPTOR),
        _multi(CODE_ARCHIVE),
        _multi(PROPERTY_FILE),
        _multi(SECURE_PROPERTY_FILE),
        _multi(CODE_PROPERTY_FILE),
        _single(RUN_PARAMS_FILE),
        _multi(CERTIFICATE_FILE),
    ),
    (Platform.JAVA.value, ApplicationType.SERVICE.value): (
        _single(SERVICE_RUN_PARAMS),
        _single(HOST_SERVICE_DESCRIPTOR),
        _multi(CODE_ARCHIVE),
        _multi(PROPERTY_FILE),
        _multi(SECURE_PROPERTY_FILE),
        _single(RUN_PARAMS_FILE),
        _multi(CODE_PROPERTY_FILE),
    ),
    (Platform.JAVA.value, ApplicationType.BATCH.value): (
        _multi(PROPERTY_FILE),
        _multi(SECURE_PROPERTY_FILE),
        _single(RUN_PARAMS_FILE),
    ),
}


def steps_for(
    platform: Optional[str],
    application_type: Optional[str],
    table: Optional[Dict[DispatchKey, Tuple[Step, ...]]] = None,
) -> Tuple[Step, ...]:
    """Steps for a platform/type pair; unknown pairs have no steps."""
    if table is None:
        table = DISPATCH_TABLE
    return table.get((platform or "", application_type or ""), ())
