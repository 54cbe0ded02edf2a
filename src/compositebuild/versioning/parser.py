"""Token parsing utilities for version resolution."""

from typing import Optional, Tuple

from ..constants import Constants
from .models import DependencyTriple, TokenKind, VersionToken


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    identifier, spec_part = s.rsplit(':', 1)
    spec_part = spec_part.strip()
    return identifier.strip(), spec_part if spec_part else None


def parse_coordinate(token: str) -> DependencyTriple:
    """Parse a CLI token ``group:artifact:version``.

    Raises:
        ValueError: when group, artifact or version is missing.
    """
    identifier, version = tokenize_rightmost_colon(token)
    if version is None or identifier.count(':') != 1:
        raise ValueError(f"Expected group:artifact:version, got {token!r}")
    group_id, artifact_id = (part.strip() for part in identifier.split(':', 1))
    if not group_id or not artifact_id:
        raise ValueError(f"Expected group:artifact:version, got {token!r}")
    return DependencyTriple(group_id, artifact_id, version)


def is_floating_version(version: str) -> bool:
    """True for published versions that belong to the snapshot family."""
    return Constants.SNAPSHOT_PREFIX in version


def classify_token(raw: str, snapshot_mode: bool = True) -> VersionToken:
    """Classify a declared version token.

    * anything containing ``source`` (any case): SOURCE
    * ``SNAPSHOT...-LATEST``: LATEST, matcher is the part before ``-LATEST``
    * other ``SNAPSHOT...`` tokens: EXACT_SUFFIX, matcher is the token
    * everything else, or any SNAPSHOT token with snapshot mode off: FIXED

    A ``-BAMBOO`` marker is ignored when looking for ``-LATEST`` but stays
    part of the prefix.
    """
    token = raw.strip()
    if Constants.SOURCE_MARKER in token.lower():
        return VersionToken(raw=token, kind=TokenKind.SOURCE, matcher=token)
    if not snapshot_mode or not token.startswith(Constants.SNAPSHOT_PREFIX):
        return VersionToken(raw=token, kind=TokenKind.FIXED, matcher=token)

    sanitized = token.replace(Constants.CI_MARKER, "")
    if sanitized.endswith(Constants.LATEST_SUFFIX):
        prefix = token.split(Constants.LATEST_SUFFIX, 1)[0]
        return VersionToken(raw=token, kind=TokenKind.LATEST, matcher=prefix)
    return VersionToken(raw=token, kind=TokenKind.EXACT_SUFFIX, matcher=token)
