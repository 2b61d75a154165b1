"""
Snapshot Dispatch

Routes reconciled instances to their ordered producer steps.
"""

from .steps import DISPATCH_TABLE, Cardinality, Step, steps_for

__all__ = [
    "DISPATCH_TABLE",
    "Cardinality",
    "Step",
    "steps_for",
]
