"""Build descriptors: the identity of one workspace folder."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from compositebuild.common.errors import PropertiesParseError
from compositebuild.constants import Constants
from compositebuild.workspace.naming import (
    name_aliases,
    title_to_kebab_cased,
    title_to_pascal_cased,
    to_kebab_cased,
    to_pascal_cased,
)
from compositebuild.workspace.properties import BuildProperties, LookupStrategy, to_bool, to_list

logger = logging.getLogger(__name__)

KEBAB_NAME_STRATEGIES: Tuple[LookupStrategy, ...] = (
    ("kebabCasedName", str.strip),
    ("hyphenatedName", str.strip),
    ("title", title_to_kebab_cased),
)
PASCAL_NAME_STRATEGIES: Tuple[LookupStrategy, ...] = (
    ("pascalCasedName", str.strip),
    ("title", title_to_pascal_cased),
)
EXTRA_SEGMENT_STRATEGIES: Tuple[LookupStrategy, ...] = (
    ("modules", to_list),
    ("extraSourceSets", to_list),
)
EXCLUDE_STRATEGIES: Tuple[LookupStrategy, ...] = (
    ("excludeFromCompositeBuild", to_bool),
)
SEARCH_HEIGHT_STRATEGIES: Tuple[LookupStrategy, ...] = (
    ("compositeSearchHeight", int),
    ("depthFromWorkspaceDirectory", int),
)


@dataclass(frozen=True)
class BuildDescriptor:
    """Identity record for one buildable workspace folder.

    ``properties_malformed`` is set when any line or value of the folder's
    gradle.properties could not be used.
    """

    folder_path: str
    folder_name: str
    kebab_cased_name: str
    pascal_cased_name: str
    exclude_from_composite_build: bool = False
    extra_segments: Tuple[str, ...] = ()
    composite_search_height: int = Constants.DEFAULT_COMPOSITE_SEARCH_HEIGHT
    include_builds_from_workspace: bool = True
    properties_malformed: bool = False
    aliases: Tuple[str, ...] = field(default=(), compare=False)

    def matches(self, declared_name: str) -> bool:
        """True if ``declared_name`` refers to this build under any naming convention."""
        return declared_name == self.folder_name or declared_name in self.aliases


def _lookup(properties: BuildProperties, strategies: Sequence[LookupStrategy], malformed: List[str]) -> Optional[Any]:
    """``properties.first`` where a bad value falls back to None on its own."""
    try:
        return properties.first(strategies)
    except (ValueError, SyntaxError) as e:
        keys = "/".join(key for key, _ in strategies)
        logger.warning("Malformed property %s in %s: %s", keys, properties.source, e)
        malformed.append(keys)
        return None


def descriptor_from_properties(folder_path: str, properties: BuildProperties) -> BuildDescriptor:
    """Derive a descriptor, filling default names from the folder name.

    A value that cannot be converted gets its default and marks the
    descriptor as malformed; the other properties are still honoured.
    """
    folder_name = os.path.basename(os.path.normpath(folder_path))
    malformed: List[str] = []
    kebab = _lookup(properties, KEBAB_NAME_STRATEGIES, malformed) or to_kebab_cased(folder_name)
    pascal = _lookup(properties, PASCAL_NAME_STRATEGIES, malformed) or to_pascal_cased(kebab)

    raw_segments = _lookup(properties, EXTRA_SEGMENT_STRATEGIES, malformed) or []
    segments = tuple(
        dict.fromkeys(to_kebab_cased(segment) for segment in raw_segments if segment and segment != "main")
    )

    exclude = bool(_lookup(properties, EXCLUDE_STRATEGIES, malformed))
    if exclude:
        logger.info("Excluding %s. Property excludeFromCompositeBuild = true", folder_name)

    height = _lookup(properties, SEARCH_HEIGHT_STRATEGIES, malformed)
    return BuildDescriptor(
        folder_path=folder_path,
        folder_name=folder_name,
        kebab_cased_name=kebab,
        pascal_cased_name=pascal,
        exclude_from_composite_build=exclude,
        extra_segments=segments,
        composite_search_height=Constants.DEFAULT_COMPOSITE_SEARCH_HEIGHT if height is None else height,
        include_builds_from_workspace=properties.get_bool("includeBuildsFromWorkspace", True),
        properties_malformed=bool(malformed or properties.errors),
        aliases=name_aliases(kebab, pascal, segments),
    )


class DescriptorStore:
    """Loads ``BuildDescriptor`` objects, memoised per resolved folder path.

    One store belongs to one resolution run.
    """

    def __init__(self) -> None:
        self._descriptors: Dict[str, BuildDescriptor] = {}

    def load(self, folder_path: str) -> BuildDescriptor:
        """Return the descriptor for ``folder_path``.

        A missing properties file yields defaults. Malformed lines are
        logged as warnings and skipped; an unreadable file yields defaults.
        Either way the descriptor is marked as malformed.
        """
        key = os.path.realpath(folder_path)
        cached = self._descriptors.get(key)
        if cached is not None:
            return cached

        properties_path = os.path.join(key, Constants.PROPERTIES_FILE)
        properties = BuildProperties(source=properties_path)
        try:
            properties = BuildProperties.load(properties_path)
        except FileNotFoundError:
            logger.debug("No %s in %s, using defaults", Constants.PROPERTIES_FILE, key)
        except PropertiesParseError as e:
            properties = BuildProperties(source=properties_path, errors=[e])
        except OSError as e:
            error = PropertiesParseError(properties_path, e.strerror or str(e))
            properties = BuildProperties(source=properties_path, errors=[error])
        for error in properties.errors:
            logger.warning("Ignoring properties of %s: %s", key, error)

        descriptor = descriptor_from_properties(key, properties)
        self._descriptors[key] = descriptor
        return descriptor

    def __len__(self) -> int:
        return len(self._descriptors)
