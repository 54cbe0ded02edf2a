"""Argument parsing functionality for compositebuild."""

import argparse

from compositebuild.constants import OutputFormats


def _add_repository_options(parser):
    """Options shared by commands that talk to a repository."""
    parser.add_argument("--repository-url",
                        dest="REPOSITORY_URL",
                        help="Artifactory base URL",
                        action="store",
                        type=str)
    parser.add_argument("--open-source",
                        dest="OPEN_SOURCE",
                        help="Search public snapshot repositories only",
                        action="store_true",
                        default=None)
    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Resolve against the local Gradle module cache instead of Artifactory",
                        action="store_true",
                        default=None)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Gradle module cache directory used with --offline",
                        action="store",
                        type=str)
    parser.add_argument("--no-snapshot-mode",
                        dest="SNAPSHOT_MODE",
                        help="Pass SNAPSHOT tokens through unchanged",
                        action="store_false",
                        default=None)
    parser.add_argument("--publish-version",
                        dest="PUBLISH_VERSION",
                        help="Version reported for artifacts built from source in the composite",
                        action="store",
                        type=str)


def build_parser():
    """Build the top level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="compositebuild",
        description=(
            "compositebuild - composite build closure and snapshot version resolver"
        ),
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or YML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--gradle-version",
                        dest="GRADLE_VERSION",
                        help="Host Gradle version; rejected when older than the supported minimum",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    closure = subparsers.add_parser("closure",
                                    help="List the builds a project transitively needs")
    closure.add_argument("PROJECT_DIR",
                         help="Root project folder",
                         type=str)
    closure.add_argument("-f", "--format",
                         dest="OUTPUT_FORMAT",
                         help="Output format (default: text)",
                         action="store",
                         type=str.lower,
                         choices=[fmt.value for fmt in OutputFormats],
                         default=OutputFormats.TEXT.value)
    closure.add_argument("--search-height",
                         dest="SEARCH_HEIGHT",
                         help="Folders to climb from the project to the workspace root",
                         action="store",
                         type=int)
    closure.add_argument("-o", "--output",
                         dest="OUTPUT",
                         help="Write the result to this file instead of stdout",
                         action="store",
                         type=str)

    resolve = subparsers.add_parser("resolve",
                                    help="Resolve declared versions to published versions")
    resolve.add_argument("COORDINATES",
                         help="Declared dependencies as group:artifact:version",
                         nargs="+",
                         type=str)
    resolve.add_argument("-d", "--project-dir",
                         dest="PROJECT_DIR",
                         help="Root project; builds in its composite resolve to the publish version",
                         action="store",
                         type=str)
    resolve.add_argument("--json",
                         dest="JSON",
                         help="Print results as JSON",
                         action="store_true")
    _add_repository_options(resolve)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
