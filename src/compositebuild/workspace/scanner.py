"""Workspace scanning: find every independently buildable folder.

A folder qualifies as a build when it holds a build descriptor, a
gradle.properties file and a settings file at the same time. Qualifying
folders are recorded and still descended into, since builds may nest.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from compositebuild.constants import Constants
from compositebuild.workspace.descriptor import BuildDescriptor, DescriptorStore

logger = logging.getLogger(__name__)


def find_build_file(folder: str) -> Optional[str]:
    """Return the path of the build descriptor in ``folder``, if any."""
    for name in Constants.BUILD_FILE_NAMES:
        candidate = os.path.join(folder, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def is_build_folder(folder: str) -> bool:
    """True when all three marker files are present in ``folder``."""
    has_settings = any(
        os.path.isfile(os.path.join(folder, name)) for name in Constants.SETTINGS_FILE_NAMES
    )
    return (
        has_settings
        and find_build_file(folder) is not None
        and os.path.isfile(os.path.join(folder, Constants.PROPERTIES_FILE))
    )


def find_workspace_root(project_dir: str, height: int) -> str:
    """Walk ``height`` directories up from ``project_dir``."""
    if height < 0:
        raise ValueError(f"compositeSearchHeight must not be negative, got {height}")
    path = os.path.realpath(project_dir)
    for _ in range(height):
        path = os.path.dirname(path)
    return path


@dataclass
class WorkspaceIndex:
    """Folder name -> path and folder name -> descriptor, in scan order."""

    root: str
    paths: Dict[str, str] = field(default_factory=dict)
    descriptors: Dict[str, BuildDescriptor] = field(default_factory=dict)

    def add(self, descriptor: BuildDescriptor) -> bool:
        """Record a build; returns False when the folder name is already taken."""
        name = descriptor.folder_name
        if name in self.paths:
            logger.warning(
                "Duplicate build folder name %s: keeping %s, ignoring %s",
                name,
                self.paths[name],
                descriptor.folder_path,
            )
            return False
        self.paths[name] = descriptor.folder_path
        self.descriptors[name] = descriptor
        return True

    def items(self) -> Iterator[Tuple[str, BuildDescriptor]]:
        return iter(self.descriptors.items())

    def __contains__(self, name: str) -> bool:
        return name in self.paths

    def __len__(self) -> int:
        return len(self.paths)


class WorkspaceScanner:
    """Depth bounded walk producing a ``WorkspaceIndex``.

    Args:
        store: Descriptor store for this run.
        max_depth: Deepest directory level (below the workspace root) visited.
    """

    def __init__(self, store: DescriptorStore, max_depth: int):
        self.store = store
        self.max_depth = max_depth

    def scan(self, root: str) -> WorkspaceIndex:
        root = os.path.realpath(root)
        logger.info("Workspace dir: %s", root)
        index = WorkspaceIndex(root=root)
        # (directory, depth); sorted push order keeps the walk deterministic
        stack = [(root, 0)]
        while stack:
            directory, depth = stack.pop()
            if depth > 0 and is_build_folder(directory):
                if index.add(self.store.load(directory)):
                    logger.info("Found: %s : %s", os.path.basename(directory), directory)
            if depth >= self.max_depth:
                continue
            stack.extend((child, depth + 1) for child in reversed(self._subdirectories(directory)))
        return index

    @staticmethod
    def _subdirectories(directory: str):
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return []
        children = []
        for entry in entries:
            if entry.name.startswith(".") or entry.name in Constants.SCAN_SKIP_DIRS:
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    children.append(entry.path)
            except OSError as e:
                logger.debug("Skipping %s: %s", entry.path, e)
                continue
        return children
