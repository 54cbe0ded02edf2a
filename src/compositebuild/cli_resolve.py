"""The ``resolve`` command: turn declared versions into published versions."""

import json
import logging
import os
import sys
from typing import FrozenSet, List, Optional

from compositebuild.cli_config import ResolverSettings, build_backend
from compositebuild.registry import RepositoryIndex
from compositebuild.versioning.engine import VersionResolutionEngine
from compositebuild.versioning.models import VersionResolution
from compositebuild.versioning.parser import parse_coordinate
from compositebuild.workspace import DescriptorStore, find_composite_builds

logger = logging.getLogger(__name__)


def included_artifacts(project_dir: Optional[str], store: Optional[DescriptorStore] = None) -> FrozenSet[str]:
    """Every name a build in the project's composite can be declared under."""
    if not project_dir:
        return frozenset()
    store = store or DescriptorStore()
    closure = find_composite_builds(project_dir, store=store)
    names = set()
    for build in closure.builds:
        names.update(store.load(os.path.join(closure.root, build)).aliases)
    logger.debug("Included artifacts: %s", sorted(names))
    return frozenset(names)


def format_result(result: VersionResolution) -> str:
    if result.ok:
        return f"{result.coordinate}:{result.requested} -> {result.version}"
    return f"{result.coordinate}:{result.requested} !! {result.status.value}: {result.detail}"


def run_resolve(args, settings: ResolverSettings, backend=None) -> List[VersionResolution]:
    """Resolve every coordinate on the command line.

    Raises:
        ValueError: when a coordinate is not ``group:artifact:version``.
    """
    dependencies = [parse_coordinate(token) for token in args.COORDINATES]
    engine = VersionResolutionEngine(
        RepositoryIndex(backend or build_backend(settings)),
        snapshot_mode=settings.snapshot_mode,
        ci=settings.ci,
        included_artifacts=included_artifacts(getattr(args, "PROJECT_DIR", None)),
        publish_version=settings.publish_version,
    )
    results = engine.resolve_all(dependencies)

    if getattr(args, "JSON", False):
        sys.stdout.write(json.dumps([result.to_dict() for result in results], indent=2) + "\n")
    else:
        for result in results:
            sys.stdout.write(format_result(result) + "\n")
    return results
