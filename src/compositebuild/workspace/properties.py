"""gradle.properties parsing and prioritised property lookup.

Several build properties have been renamed over time (``hyphenatedName`` ->
``kebabCasedName``, ``extraSourceSets`` -> ``modules``). Lookups are expressed
as ordered strategies evaluated against the parsed map; the first key that
holds a usable value wins.
"""
from __future__ import annotations

import ast
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from compositebuild.common.errors import PropertiesParseError
from compositebuild.common.logging_utils import warn_once

logger = logging.getLogger(__name__)

# (property key, converter applied to the raw string value)
LookupStrategy = Tuple[str, Callable[[str], Any]]

DEPRECATED_KEYS = {
    "hyphenatedName": "kebabCasedName",
    "extraSourceSets": "modules",
    "depthFromWorkspaceDirectory": "compositeSearchHeight",
}

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(text: str, source: str, line_number: int) -> str:
    out = []
    i = 0
    while i < len(text):
        character = text[i]
        if character != "\\" or i + 1 >= len(text):
            out.append(character)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            code = text[i + 2:i + 6]
            if len(code) != 4:
                raise PropertiesParseError(source, f"line {line_number}: malformed \\u escape")
            try:
                out.append(chr(int(code, 16)))
            except ValueError as exc:
                raise PropertiesParseError(source, f"line {line_number}: malformed \\u escape") from exc
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _logical_lines(text: str) -> Iterable[Tuple[int, str]]:
    """Yield (first physical line number, joined logical line)."""
    pending = ""
    start = 0
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.lstrip() if pending else raw
        if not pending:
            start = number
            stripped = line.lstrip()
            if not stripped or stripped[0] in "#!":
                continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield start, pending + line
        pending = ""
    if pending:
        yield start, pending


def _split_key_value(line: str) -> Tuple[str, str]:
    line = line.lstrip()
    i = 0
    while i < len(line):
        character = line[i]
        if character == "\\":
            i += 2
            continue
        if character in "=:" or character.isspace():
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip()
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip()
    return key, rest


def parse_properties(
    text: str, source: str = "<string>", errors: Optional[List[PropertiesParseError]] = None
) -> Dict[str, str]:
    """Parse Java ``.properties`` content into an ordered dict.

    When ``errors`` is given, a malformed line is appended to it and skipped
    instead of failing the whole file.

    Raises:
        PropertiesParseError: on malformed escapes, unless ``errors`` is given.
    """
    values: Dict[str, str] = {}
    for line_number, line in _logical_lines(text):
        raw_key, raw_value = _split_key_value(line)
        try:
            key = _unescape(raw_key, source, line_number)
            value = _unescape(raw_value, source, line_number)
        except PropertiesParseError as e:
            if errors is None:
                raise
            errors.append(e)
            continue
        values[key] = value
    return values


def load_properties(path: str, errors: Optional[List[PropertiesParseError]] = None) -> Dict[str, str]:
    """Read and parse a properties file; ``errors`` as for ``parse_properties``.

    Raises:
        FileNotFoundError: when the file does not exist.
        PropertiesParseError: when the file is not valid UTF-8 or malformed.
    """
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except UnicodeDecodeError as exc:
        raise PropertiesParseError(path, f"not valid UTF-8 ({exc.reason})") from exc
    return parse_properties(text, path, errors)


def to_bool(value: str) -> bool:
    """``"true"`` in any case is True, everything else False."""
    return value.strip().lower() == "true"


def to_list(value: str) -> List[str]:
    """Parse a list literal such as ``["test", "visualizers"]``.

    Raises:
        ValueError: when the value is not a list of strings.
    """
    parsed = ast.literal_eval(value.strip())
    if not isinstance(parsed, (list, tuple)) or not all(isinstance(item, str) for item in parsed):
        raise ValueError(f"expected a list of strings, got {value!r}")
    return list(parsed)


class BuildProperties:
    """Normalised view over one folder's gradle.properties values."""

    def __init__(
        self,
        values: Optional[Dict[str, str]] = None,
        source: str = "<memory>",
        errors: Sequence[PropertiesParseError] = (),
    ):
        self._values = {key.strip(): value.strip() for key, value in (values or {}).items()}
        self.source = source
        self.errors = list(errors)

    @classmethod
    def load(cls, path: str) -> "BuildProperties":
        """Load ``path``, skipping malformed lines and keeping them in ``errors``.

        Raises:
            FileNotFoundError: when the file does not exist.
            PropertiesParseError: when the file is not valid UTF-8.
        """
        errors: List[PropertiesParseError] = []
        values = load_properties(path, errors)
        return cls(values, path, errors)

    def has(self, key: str) -> bool:
        """True when ``key`` is set to something other than blank or a ``$placeholder``."""
        value = self._values.get(key)
        return bool(value) and not value.startswith("$")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        if not self.has(key):
            return default
        return self._values[key]

    def first(self, strategies: Sequence[LookupStrategy]) -> Optional[Any]:
        """Evaluate ``strategies`` in order and return the first converted hit."""
        for key, convert in strategies:
            if not self.has(key):
                continue
            if key in DEPRECATED_KEYS:
                warn_once(
                    logger,
                    f"{self.source}:{key}",
                    "In %s, \"%s\" has been deprecated. Please use \"%s\" instead.",
                    self.source,
                    key,
                    DEPRECATED_KEYS[key],
                )
            return convert(self._values[key])
        return None

    def get_bool(self, key: str, default: bool = False) -> bool:
        if not self.has(key):
            return default
        return to_bool(self._values[key])

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"BuildProperties({self.source!r}, {len(self._values)} keys)"
