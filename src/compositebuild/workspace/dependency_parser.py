"""Static extraction of dependency declarations from build descriptors.

The descriptor is not evaluated. Each ``dependencies {`` style block is
located, its closing brace found with a depth counter (braces inside strings
and comments do not count), and two declaration shapes are recognised
inside it:

* a string literal ``"group:artifact:version"``
* a key/value map ``group: "g", name: "a", version: "v"`` (Groovy) or
  ``group = "g", name = "a", version = "v"`` (Kotlin)

Anything else is skipped; the parser only has to find references to
sibling builds.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from compositebuild.common.errors import DescriptorParseError
from compositebuild.versioning.models import DependencyTriple

logger = logging.getLogger(__name__)

_BLOCK_OPEN = re.compile(r"\b\w*[dD]ependencies\s*\{")
_MAP_KEY = re.compile(r"\b(group|name|version)\s*[:=]\s*")
_BARE_VALUE = re.compile(r"[\w.$-]+")
_MAP_KEYS = ("group", "name", "version")


class _Source:
    """Descriptor text with comments blanked and string literal spans recorded.

    ``masked`` has the same length as the input; comment characters and the
    content of string literals are replaced by spaces so that brace counting
    and key matching only see code.
    """

    def __init__(self, text: str):
        self.text = text
        self.strings: Dict[int, Tuple[int, str]] = {}  # opening quote index -> (end index, content)
        self.masked = self._mask(text)

    def _mask(self, text: str) -> str:
        out = list(text)
        i = 0
        length = len(text)
        while i < length:
            if text.startswith("//", i):
                end = text.find("\n", i)
                end = length if end == -1 else end
                self._blank(out, i, end)
                i = end
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                end = length if end == -1 else end + 2
                self._blank(out, i, end)
                i = end
            elif text[i] in "\"'":
                quote = text[i] * 3 if text.startswith(text[i] * 3, i) else text[i]
                start = i + len(quote)
                j = start
                while j < length and not text.startswith(quote, j):
                    if text[j] == "\\":
                        j += 1
                    elif text[j] == "\n" and len(quote) == 1:
                        break
                    j += 1
                content_end = min(j, length)
                self.strings[i] = (content_end + len(quote), text[start:content_end])
                self._blank(out, start, content_end)
                i = content_end + len(quote)
            else:
                i += 1
        return "".join(out)

    @staticmethod
    def _blank(out: List[str], start: int, end: int) -> None:
        for k in range(start, min(end, len(out))):
            if out[k] != "\n":
                out[k] = " "

    def matching_brace(self, open_index: int) -> Optional[int]:
        depth = 0
        for k in range(open_index, len(self.masked)):
            character = self.masked[k]
            if character == "{":
                depth += 1
            elif character == "}":
                depth -= 1
                if depth == 0:
                    return k
        return None

    def strings_between(self, start: int, end: int) -> List[Tuple[int, str]]:
        return [(index, content) for index, (_, content) in sorted(self.strings.items()) if start < index < end]


def _triple_from_string(literal: str) -> Optional[DependencyTriple]:
    parts = literal.split(":")
    if len(parts) < 3:
        return None
    group, artifact, version = (part.strip() for part in parts[:3])
    if not group or not artifact or not version or any(c.isspace() for c in group + artifact + version):
        return None
    return DependencyTriple(group, artifact, version)


def _map_triples(source: _Source, start: int, end: int) -> List[DependencyTriple]:
    """Collect ``group``/``name``/``version`` runs; a repeated key starts a new map."""
    triples = []
    current: Dict[str, str] = {}

    def flush() -> None:
        if all(key in current for key in _MAP_KEYS):
            triples.append(DependencyTriple(current["group"], current["name"], current["version"]))
        current.clear()

    for match in _MAP_KEY.finditer(source.masked, start, end):
        key = match.group(1)
        value_index = match.end()
        if value_index in source.strings:
            value = source.strings[value_index][1]
        else:
            bare = _BARE_VALUE.match(source.masked, value_index)
            if bare is None:
                continue
            value = bare.group(0)
        if key in current:
            flush()
        current[key] = value
    flush()
    return triples


def parse_dependencies(text: str, source_name: str = "<string>") -> List[DependencyTriple]:
    """Return the sorted, de-duplicated dependency triples declared in ``text``.

    Raises:
        DescriptorParseError: when a dependency block has no closing brace.
    """
    source = _Source(text)
    found = set()
    for match in _BLOCK_OPEN.finditer(source.masked):
        open_index = match.end() - 1
        close_index = source.matching_brace(open_index)
        if close_index is None:
            raise DescriptorParseError(source_name, f"unmatched '{{' at offset {open_index}")

        for _, literal in source.strings_between(open_index, close_index):
            triple = _triple_from_string(literal)
            if triple is not None:
                found.add(triple)
        found.update(_map_triples(source, open_index, close_index))

    for triple in sorted(found):
        logger.debug("Found declared dependency in %s: %s", source_name, triple)
    return sorted(found)


def parse_descriptor_file(path: str) -> List[DependencyTriple]:
    """Parse the build descriptor at ``path``; a missing file has no dependencies.

    Raises:
        DescriptorParseError: on an unmatched block or unreadable file.
    """
    logger.info("Parsing for dependencies: %s", path)
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        logger.info("Build not found on disk: %s", path)
        return []
    except (OSError, UnicodeDecodeError) as e:
        raise DescriptorParseError(path, str(e)) from e
    return parse_dependencies(text, path)
