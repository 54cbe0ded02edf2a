"""Dependency manifest (POM) loading."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, TYPE_CHECKING

from compositebuild.versioning.models import DependencyTriple

if TYPE_CHECKING:
    from compositebuild.registry.base import RepositoryBackend

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip an XML namespace: ``{http://maven.apache.org/POM/4.0.0}version`` -> ``version``."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name and child.text and child.text.strip():
            return child.text.strip()
    return None


def parse_pom_dependencies(text: str, source: str = "<pom>") -> List[DependencyTriple]:
    """Extract every complete ``<dependency>`` from POM ``text``.

    Works with or without the Maven POM namespace. Entries missing a
    groupId, artifactId or version are skipped. Malformed XML yields an
    empty list and a warning.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        logger.warning("Cannot parse POM %s: %s", source, e)
        return []

    dependencies = []
    for element in root.iter():
        if _local_name(element.tag) != "dependency":
            continue
        group = _child_text(element, "groupId")
        artifact = _child_text(element, "artifactId")
        version = _child_text(element, "version")
        if group is None or artifact is None or version is None:
            continue
        dependencies.append(DependencyTriple(group, artifact, version))
    return dependencies


def load_manifest(backend: "RepositoryBackend", group_id: str, artifact_id: str, version: str) -> List[DependencyTriple]:
    """Fetch and parse the POM of one published version; absent POM -> []."""
    text = backend.fetch_manifest(group_id, artifact_id, version)
    if text is None:
        logger.debug("No POM for %s:%s:%s in %s", group_id, artifact_id, version, backend.describe())
        return []
    return parse_pom_dependencies(text, f"{group_id}:{artifact_id}:{version}")
