"""Transitive closure of the sibling builds a root project needs.

The resolver walks declared dependencies with an explicit worklist. A
matched folder joins the closure before it is expanded, so every folder is
processed at most once and cyclic declarations terminate.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from compositebuild.common.errors import DescriptorParseError
from compositebuild.workspace.dependency_parser import parse_descriptor_file
from compositebuild.workspace.descriptor import BuildDescriptor, DescriptorStore
from compositebuild.workspace.scanner import (
    WorkspaceIndex,
    WorkspaceScanner,
    find_build_file,
    find_workspace_root,
)
from compositebuild.constants import Constants
from compositebuild.versioning.models import DependencyTriple

logger = logging.getLogger(__name__)


class ClosureSet:
    """Insertion ordered, grow-only set of folder names."""

    def __init__(self) -> None:
        self._names: Dict[str, None] = {}

    def add(self, name: str) -> bool:
        """Add ``name``; returns False if it was already present."""
        if name in self._names:
            return False
        self._names[name] = None
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


@dataclass
class ClosureResult:
    """Closure of one root project.

    ``builds`` are paths relative to the root project directory, in the
    order the folders were discovered.
    """
    root: str
    workspace: str
    names: List[str] = field(default_factory=list)
    builds: List[str] = field(default_factory=list)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {
                "root": self.root,
                "workspace": self.workspace,
                "builds": self.builds,
                "names": self.names,
                "excluded": self.excluded,
                "edges": [list(edge) for edge in self.edges],
            },
            indent=2,
        )

    def to_settings(self) -> str:
        """``includeBuild`` lines for a settings file."""
        return "".join(f'includeBuild("{build}")\n' for build in self.builds)

    def to_dot(self) -> str:
        """Graphviz DOT rendering of the discovered sibling edges."""
        root_name = os.path.basename(self.root)
        lines = ["digraph composite {", f'  "{root_name}";']
        lines.extend(f'  "{name}";' for name in self.names)
        lines.extend(f'  "{parent}" -> "{child}";' for parent, child in self.edges)
        lines.append("}")
        return "\n".join(lines) + "\n"


class TransitiveClosureResolver:
    """Computes which workspace builds a root project transitively depends on.

    Args:
        index: Workspace index for this run.
        root_dir: Directory of the root project.
    """

    def __init__(self, index: WorkspaceIndex, root_dir: str):
        self.index = index
        self.root_dir = os.path.realpath(root_dir)
        self.root_name = os.path.basename(self.root_dir)

    def _properties_malformed(self, name: str, folder: str) -> bool:
        descriptor = self.index.descriptors.get(name)
        return descriptor is not None and descriptor.folder_path == folder and descriptor.properties_malformed

    def _dependencies_of(self, name: str, folder: str, is_root: bool) -> List[DependencyTriple]:
        if self._properties_malformed(name, folder):
            properties_path = os.path.join(folder, Constants.PROPERTIES_FILE)
            if is_root:
                raise DescriptorParseError(properties_path, "malformed properties")
            logger.warning("Malformed %s; treating it as having no dependencies", properties_path)
            return []
        build_file = find_build_file(folder)
        if build_file is None:
            if is_root:
                logger.warning("No build file found in root project %s", folder)
            return []
        try:
            return parse_descriptor_file(build_file)
        except DescriptorParseError as e:
            if is_root:
                raise
            logger.warning("%s; treating it as having no dependencies", e)
            return []

    def _matching_builds(self, artifact_id: str, closure: ClosureSet, excluded: Set[str]) -> List[str]:
        """Every unvisited, non-excluded folder that answers to ``artifact_id``."""
        matched = []
        for name, descriptor in self.index.items():
            if name in closure or descriptor.folder_path == self.root_dir or not descriptor.matches(artifact_id):
                continue
            if descriptor.exclude_from_composite_build:
                if name not in excluded:
                    excluded.add(name)
                    logger.info("Not including excluded build %s (declared as %s)", name, artifact_id)
                continue
            logger.info("Matched: %s to %s", artifact_id, name)
            matched.append(name)
        return matched

    def resolve(self) -> ClosureResult:
        """Walk the dependency declarations starting at the root project.

        Raises:
            DescriptorParseError: when the root project's own descriptor or properties are unparseable.
        """
        closure = ClosureSet()
        excluded: Set[str] = set()
        edges: List[Tuple[str, str]] = []
        # (folder name, folder path, is root)
        worklist: List[Tuple[str, str, bool]] = [(self.root_name, self.root_dir, True)]

        while worklist:
            name, folder, is_root = worklist.pop()
            newly_matched = []
            for dependency in self._dependencies_of(name, folder, is_root):
                for match in self._matching_builds(dependency.artifact_id, closure, excluded):
                    closure.add(match)
                    edges.append((name, match))
                    newly_matched.append(match)
                    logger.info("Adding module: %s", match)
            # Reversed push keeps expansion in declaration order (depth first)
            worklist.extend((match, self.index.paths[match], False) for match in reversed(newly_matched))

        result = ClosureResult(
            root=self.root_dir,
            workspace=self.index.root,
            edges=edges,
            excluded=sorted(excluded),
        )
        for name in closure:
            relative = os.path.relpath(self.index.paths[name], self.root_dir)
            if relative == ".":
                continue
            result.names.append(name)
            result.builds.append(relative)
        for build in result.builds:
            logger.info("Including build: %s", build)
        return result


def find_composite_builds(
    project_dir: str,
    store: Optional[DescriptorStore] = None,
    search_height: Optional[int] = None,
    max_depth: Optional[int] = None,
) -> ClosureResult:
    """Scan the workspace around ``project_dir`` and resolve its closure.

    The search height comes from the argument or else from the root
    project's ``compositeSearchHeight`` property.
    """
    store = store or DescriptorStore()
    root_descriptor: BuildDescriptor = store.load(project_dir)
    height = root_descriptor.composite_search_height if search_height is None else search_height
    workspace = find_workspace_root(project_dir, height)

    if not root_descriptor.include_builds_from_workspace:
        logger.info("includeBuildsFromWorkspace = false, not including any builds")
        return ClosureResult(root=os.path.realpath(project_dir), workspace=workspace)

    depth = height + Constants.NESTED_BUILD_DEPTH if max_depth is None else max_depth
    index = WorkspaceScanner(store, depth).scan(workspace)
    return TransitiveClosureResolver(index, project_dir).resolve()
