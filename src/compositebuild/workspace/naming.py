"""Name conversions between folder names, kebab-cased and Pascal-cased build names.

Every build in a workspace can be referred to by several spellings: its
folder name, its kebab-cased artifact name (``ihmc-java-toolkit``), its
Pascal-cased name (``IHMCJavaToolkit``) and the same two forms with an extra
module segment appended (``ihmc-java-toolkit-test``, ``IHMCJavaToolkitTest``).
"""
from __future__ import annotations

import re
from typing import Iterable, List, Tuple

_SEPARATORS = re.compile(r"[-_]+")


def _require(name: str) -> None:
    if not name:
        raise ValueError("Cannot convert an empty name")


def _split_words(name: str) -> List[str]:
    """Split at uppercase letters and digits; each one starts a new segment."""
    parts: List[str] = []
    part = ""
    for character in name:
        if character.isupper() or character.isdigit():
            if part:
                parts.append(part)
            part = character
        else:
            part += character
    if part:
        parts.append(part)

    words = []
    for raw in parts:
        words.extend(word.lower() for word in _SEPARATORS.split(raw) if word)
    return words


def to_kebab_cased(name: str) -> str:
    """Convert any-cased ``name`` to lowercase hyphen separated form.

    >>> to_kebab_cased("IHMCJavaToolkit")
    'i-h-m-c-java-toolkit'
    >>> to_kebab_cased("ihmc-java-toolkit")
    'ihmc-java-toolkit'
    """
    _require(name)
    return "-".join(_split_words(name))


def to_pascal_cased(name: str) -> str:
    """Capitalize each hyphen delimited segment and concatenate them.

    Only the first character of a segment changes, so ``ihmc-IO`` becomes
    ``IhmcIO``.
    """
    _require(name)
    return "".join(section[:1].upper() + section[1:] for section in name.split("-"))


def to_camel_cased(name: str) -> str:
    """Like ``to_pascal_cased`` but with a lowercase first segment."""
    _require(name)
    sections = name.split("-")
    head = sections[0][:1].lower() + sections[0][1:]
    return head + "".join(section[:1].upper() + section[1:] for section in sections[1:])


def title_to_kebab_cased(title: str) -> str:
    """``"Your Project Name"`` -> ``"your-project-name"``."""
    _require(title.strip())
    return "-".join(word.lower() for word in title.split())


def title_to_pascal_cased(title: str) -> str:
    """``"Your Project Name"`` -> ``"YourProjectName"``."""
    _require(title.strip())
    return "".join(word[:1].upper() + word[1:] for word in title.split())


def name_aliases(kebab_cased_name: str, pascal_cased_name: str, extra_segments: Iterable[str] = ()) -> Tuple[str, ...]:
    """Return every accepted spelling of a build, in a stable order.

    Args:
        kebab_cased_name: Canonical hyphenated name, e.g. ``foo-bar``.
        pascal_cased_name: Canonical compound name, e.g. ``FooBar``.
        extra_segments: Extra module names, e.g. ``["test", "visualizers"]``.

    Returns:
        Tuple of unique aliases: the base names followed by
        ``foo-bar-test`` / ``FooBarTest`` for each extra segment.
    """
    _require(kebab_cased_name)
    _require(pascal_cased_name)
    aliases = [kebab_cased_name, pascal_cased_name]
    for segment in extra_segments:
        if not segment:
            continue
        aliases.append(f"{kebab_cased_name}-{to_kebab_cased(segment)}")
        aliases.append(pascal_cased_name + to_pascal_cased(to_kebab_cased(segment)))
    return tuple(dict.fromkeys(aliases))
