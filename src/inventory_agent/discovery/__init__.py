"""
Instance Discovery Module

Finds installed application instances under conventional directories and
reconciles them with the administrator-declared inventory.
"""

from .base import (
    ApplicationType,
    DiagnosticEvent,
    DiagnosticKind,
    Diagnostics,
    DiscoveryResult,
    InstanceRecord,
    Platform,
)
from .declared import load_declared_inventory
from .ignore import is_ignored, load_ignore_list
from .reconcile import reconcile, reconcile_indexed
from .scanners import DEFAULT_SCANNERS, PlatformScanner, discover_instances

__all__ = [
    "ApplicationType",
    "DiagnosticEvent",
    "DiagnosticKind",
    "Diagnostics",
    "DiscoveryResult",
    "InstanceRecord",
    "Platform",
    "load_declared_inventory",
    "is_ignored",
    "load_ignore_list",
    "reconcile",
    "reconcile_indexed",
    "DEFAULT_SCANNERS",
    "PlatformScanner",
    "discover_instances",
]
