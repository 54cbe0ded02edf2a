"""The ``closure`` command: list the builds a project transitively needs."""

import logging
import os
import sys

from compositebuild.common.logging_utils import Timer, extra_context, is_debug_enabled
from compositebuild.constants import OutputFormats
from compositebuild.workspace import ClosureResult, DescriptorStore, find_composite_builds

logger = logging.getLogger(__name__)


def render_closure(result: ClosureResult, output_format: str) -> str:
    """Render a closure in one of the ``OutputFormats``."""
    if output_format == OutputFormats.JSON.value:
        return result.to_json() + "\n"
    if output_format == OutputFormats.SETTINGS.value:
        return result.to_settings()
    if output_format == OutputFormats.DOT.value:
        return result.to_dot()
    lines = [f"Workspace: {result.workspace}"]
    lines.extend(result.builds)
    if result.excluded:
        lines.append(f"Excluded: {', '.join(result.excluded)}")
    return "\n".join(lines) + "\n"


def run_closure(args, store=None) -> ClosureResult:
    """Resolve and print the closure of ``args.PROJECT_DIR``.

    Raises:
        DescriptorParseError: when the root project's build file cannot be read.
        ValueError: on a negative search height.
    """
    project_dir = os.path.abspath(args.PROJECT_DIR)
    if not os.path.isdir(project_dir):
        raise NotADirectoryError(project_dir)

    with Timer() as timer:
        result = find_composite_builds(
            project_dir,
            store=store or DescriptorStore(),
            search_height=getattr(args, "SEARCH_HEIGHT", None),
        )
    if is_debug_enabled(logger):
        logger.debug(
            "Closure resolved",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="closure",
                count=len(result.builds),
                duration_ms=timer.duration_ms(),
            ),
        )

    rendered = render_closure(result, getattr(args, "OUTPUT_FORMAT", OutputFormats.TEXT.value))
    output = getattr(args, "OUTPUT", None)
    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(rendered)
        logger.info("Closure written to %s", output)
    else:
        sys.stdout.write(rendered)
    return result
