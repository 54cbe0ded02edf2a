"""Exception types raised by the closure resolver and the version engine."""
from __future__ import annotations

from typing import Optional


class CompositeBuildError(Exception):
    """Base class for all errors raised by compositebuild."""


class ConfigError(CompositeBuildError):
    """Invalid configuration file, environment or CLI values."""


class PropertiesParseError(CompositeBuildError):
    """A gradle.properties file could not be parsed."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Cannot parse {path}: {message}")
        self.path = path


class DescriptorParseError(CompositeBuildError):
    """A build descriptor's dependency block could not be matched."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Cannot evaluate {path}: {message}")
        self.path = path


class RepositoryAccessError(CompositeBuildError):
    """The repository could not be reached or refused the credentials.

    Args:
        repository: Repository name or base URL being queried.
        coordinate: ``group:artifact[:version]`` being looked up.
        reason: Transport or HTTP level detail.
    """

    def __init__(self, repository: str, coordinate: str, reason: Optional[str] = None):
        message = (
            f"Problem authenticating or retrieving item from repository {repository}: {coordinate}."
        )
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.repository = repository
        self.coordinate = coordinate
        self.reason = reason
