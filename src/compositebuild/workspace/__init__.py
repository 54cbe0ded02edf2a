"""Workspace scanning and composite build closure."""

from .closure import ClosureResult, ClosureSet, TransitiveClosureResolver, find_composite_builds
from .descriptor import BuildDescriptor, DescriptorStore
from .scanner import WorkspaceIndex, WorkspaceScanner

__all__ = [
    "BuildDescriptor",
    "ClosureResult",
    "ClosureSet",
    "DescriptorStore",
    "TransitiveClosureResolver",
    "WorkspaceIndex",
    "WorkspaceScanner",
    "find_composite_builds",
]
