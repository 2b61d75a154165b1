"""
Host Detection

Identity of the host the agent runs on.
"""

import platform
import socket
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class HostInfo:
    """Host information"""
    hostname: str
    system: str  # 'linux', 'darwin', 'windows'
    release: str
    architecture: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def detect_host() -> HostInfo:
    """Detect current host"""
    return HostInfo(
        hostname=socket.gethostname(),
        system=platform.system().lower(),
        release=platform.release(),
        architecture=platform.machine(),
    )
