"""Runtime settings for the resolve command.

Values are merged with the precedence CLI flags > ``COMPOSITEBUILD_*``
environment variables > YAML config file > ``Constants`` defaults.

Example config file::

    repository:
      url: https://artifactory.example/artifactory
      username: builder
      open_source: false
      offline: false
      timeout: 30
      retries: 3
    resolution:
      snapshot_mode: true
      publish_version: SNAPSHOT-LOCAL
    ci:
      enabled: true
      build_number: "412"
      branch_name: feature/walking
      child_build: false
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import yaml
from packaging.version import InvalidVersion, Version

from compositebuild.common.errors import ConfigError
from compositebuild.constants import Constants
from compositebuild.registry import ArtifactoryRepository, LocalCacheRepository
from compositebuild.registry.artifactory import snapshot_repositories
from compositebuild.registry.base import RepositoryBackend
from compositebuild.versioning.engine import CIContext

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class ResolverSettings:
    """Everything needed to build a repository backend and an engine."""
    repository_url: str = Constants.ARTIFACTORY_URL
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    open_source: bool = False
    offline: bool = False
    cache_dir: str = Constants.GRADLE_MODULE_CACHE
    snapshot_mode: bool = True
    publish_version: Optional[str] = None
    timeout: float = Constants.REQUEST_TIMEOUT
    retries: int = Constants.HTTP_RETRY_MAX
    ci: CIContext = field(default_factory=CIContext)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML config file; no path means an empty config.

    Raises:
        ConfigError: when the file is missing, unreadable or not a mapping.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    logger.debug("Loaded config file %s", path)
    return data


def _coerce_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _coerce_number(value: Any, name: str, kind):
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e
    if number < 0:
        raise ConfigError(f"{name} must not be negative, got {value!r}")
    return number


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    return section


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(Constants.ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _pick(*candidates):
    """First candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def build_settings(args=None, config: Optional[Mapping[str, Any]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> ResolverSettings:
    """Merge CLI arguments, environment and config file into settings.

    Raises:
        ConfigError: on values of the wrong type.
    """
    config = config or {}
    environ = os.environ if environ is None else environ
    repository = _section(config, "repository")
    resolution = _section(config, "resolution")
    ci = _section(config, "ci")
    defaults = ResolverSettings()

    def arg(name):
        return getattr(args, name, None) if args is not None else None

    settings = ResolverSettings(
        repository_url=_pick(arg("REPOSITORY_URL"), _env(environ, "REPOSITORY_URL"),
                             repository.get("url"), defaults.repository_url),
        username=_pick(environ.get(Constants.ENV_ARTIFACTORY_USERNAME) or None, repository.get("username")),
        password=_pick(environ.get(Constants.ENV_ARTIFACTORY_PASSWORD) or None, repository.get("password")),
        open_source=_coerce_bool(_pick(arg("OPEN_SOURCE"), _env(environ, "OPEN_SOURCE"),
                                       repository.get("open_source"), defaults.open_source), "open_source"),
        offline=_coerce_bool(_pick(arg("OFFLINE"), _env(environ, "OFFLINE"),
                                   repository.get("offline"), defaults.offline), "offline"),
        cache_dir=_pick(arg("CACHE_DIR"), _env(environ, "CACHE_DIR"),
                        repository.get("cache_dir"), defaults.cache_dir),
        snapshot_mode=_coerce_bool(_pick(arg("SNAPSHOT_MODE"), _env(environ, "SNAPSHOT_MODE"),
                                         resolution.get("snapshot_mode"), defaults.snapshot_mode), "snapshot_mode"),
        publish_version=_pick(arg("PUBLISH_VERSION"), _env(environ, "PUBLISH_VERSION"),
                              resolution.get("publish_version")),
        timeout=_coerce_number(_pick(_env(environ, "TIMEOUT"), repository.get("timeout"),
                                     defaults.timeout), "timeout", float),
        retries=_coerce_number(_pick(_env(environ, "RETRIES"), repository.get("retries"),
                                     defaults.retries), "retries", int),
        ci=_build_ci_context(ci, environ),
    )
    if settings.password and not settings.username:
        logger.warning("Repository password configured without a username; credentials ignored.")
    return settings


def _build_ci_context(ci: Mapping[str, Any], environ: Mapping[str, str]) -> CIContext:
    enabled = _coerce_bool(_pick(_env(environ, "CI"), ci.get("enabled"), False), "ci.enabled")
    if not enabled:
        return CIContext()
    build_number = _pick(_env(environ, "CI_BUILD_NUMBER"), ci.get("build_number"), "0")
    branch_name = _pick(_env(environ, "CI_BRANCH_NAME"), ci.get("branch_name"), "")
    child_build = _coerce_bool(_pick(_env(environ, "CI_CHILD_BUILD"), ci.get("child_build"), False),
                               "ci.child_build")
    return CIContext(
        enabled=True,
        build_number=str(build_number),
        branch_name=str(branch_name).replace("/", "-") or None,
        is_child_build=child_build,
    )


def check_gradle_version(gradle_version: Optional[str]) -> None:
    """Reject Gradle versions older than ``Constants.MIN_GRADLE_VERSION``.

    Raises:
        ConfigError: when the version is unparseable or too old.
    """
    if not gradle_version:
        return
    try:
        current = Version(gradle_version)
    except InvalidVersion as e:
        raise ConfigError(f"Unrecognised Gradle version: {gradle_version}") from e
    if current < Version(Constants.MIN_GRADLE_VERSION):
        raise ConfigError(
            f"Gradle {gradle_version} is not supported; "
            f"version {Constants.MIN_GRADLE_VERSION} or newer is required"
        )


def build_backend(settings: ResolverSettings) -> RepositoryBackend:
    """Repository backend selected by the settings."""
    if settings.offline:
        logger.info("Offline: resolving against %s", settings.cache_dir)
        return LocalCacheRepository(settings.cache_dir)
    return ArtifactoryRepository(
        base_url=settings.repository_url,
        repositories=snapshot_repositories(settings.open_source),
        username=settings.username,
        password=settings.password,
        timeout=settings.timeout,
        retries=settings.retries,
    )
