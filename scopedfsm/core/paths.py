# scopedfsm/core/paths.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from scopedfsm.core.errors import MalformedStateNameError

SEPARATOR = "."

StatePath = Tuple[str, ...]


def decompose(name: str) -> StatePath:
    """
    Split a dotted state name into its ancestor-to-leaf components.

    :param name: A dotted path such as ``"connected.busy"``.
    :return: The components, e.g. ``("connected", "busy")``.
    :raises MalformedStateNameError: If the name is not a string, is empty,
        or contains an empty component.
    """
    if not isinstance(name, str):
        raise MalformedStateNameError(name, "state names must be strings")
    if not name:
        raise MalformedStateNameError(name, "state names must not be empty")
    parts = tuple(name.split(SEPARATOR))
    if any(not part for part in parts):
        raise MalformedStateNameError(name)
    return parts


def join(components: Iterable[str]) -> str:
    """Join path components back into a dotted name."""
    return SEPARATOR.join(components)


def common_ancestor_depth(a: Sequence[str], b: Sequence[str]) -> int:
    """
    Count the leading components two paths share, compared by exact string match.

    :param a: First path, as components.
    :param b: Second path, as components.
    :return: Number of equal leading components.
    """
    depth = 0
    for left, right in zip(a, b):
        if left != right:
            break
        depth += 1
    return depth


def prefixes(components: Sequence[str]) -> List[str]:
    """Return the dotted name of every ancestor-to-leaf prefix of a path."""
    return [join(components[: i + 1]) for i in range(len(components))]


def is_prefix(prefix: Sequence[str], path: Sequence[str]) -> bool:
    """True if ``prefix`` equals the leading components of ``path``."""
    return len(prefix) <= len(path) and tuple(path[: len(prefix)]) == tuple(prefix)
