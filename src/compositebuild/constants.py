"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 4


class OutputFormats(Enum):
    """Output formats supported by the closure command.

    Args:
        Enum (string): Output formats for the closure command.
    """

    TEXT = "text"
    JSON = "json"
    SETTINGS = "settings"
    DOT = "dot"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    # Marker files; all three must be present for a folder to count as a build
    BUILD_FILE_NAMES = ("build.gradle", "build.gradle.kts")
    SETTINGS_FILE_NAMES = ("settings.gradle", "settings.gradle.kts")
    PROPERTIES_FILE = "gradle.properties"
    SCAN_SKIP_DIRS = {".git", ".gradle", ".idea", "build", "out", "node_modules"}
    NESTED_BUILD_DEPTH = 2
    DEFAULT_COMPOSITE_SEARCH_HEIGHT = 1

    # Version tokens
    SNAPSHOT_PREFIX = "SNAPSHOT"
    LATEST_SUFFIX = "-LATEST"
    CI_MARKER = "-BAMBOO"
    SOURCE_MARKER = "source"
    MATCH_NOT_FOUND = "MATCH-NOT-FOUND"
    LATEST_NOT_FOUND = "LATEST-NOT-FOUND"

    # Repository
    ARTIFACTORY_URL = "https://artifactory.ihmc.us/artifactory"
    SNAPSHOT_REPOSITORIES = ["snapshots"]
    PROPRIETARY_SNAPSHOT_REPOSITORIES = ["snapshots", "proprietary-snapshots"]
    GRADLE_MODULE_CACHE = "~/.gradle/caches/modules-2/files-2.1"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    # Environment
    ENV_PREFIX = "COMPOSITEBUILD_"
    ENV_LOG_LEVEL = "COMPOSITEBUILD_LOG_LEVEL"
    ENV_ARTIFACTORY_USERNAME = "COMPOSITEBUILD_ARTIFACTORY_USERNAME"
    ENV_ARTIFACTORY_PASSWORD = "COMPOSITEBUILD_ARTIFACTORY_PASSWORD"

    MIN_GRADLE_VERSION = "5.3.1"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
