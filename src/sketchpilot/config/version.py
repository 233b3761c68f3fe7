"""Semantic version comparison for platform package versions.

Package index documents carry versions like "1.8.2", "1.8.10" or
"2.0.0-rc1". Plain string sorting puts "1.8.10" before "1.8.2", so versions
are compared component by component instead.
"""

import functools
import re
from typing import List, Tuple, Union

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)(?:-([0-9A-Za-z.-]+))?(?:\+.*)?$")


def _parse(version: str) -> Tuple[List[int], List[Union[int, str]]]:
    match = _VERSION_RE.match(version.strip())
    if not match:
        # Unparseable versions sort before everything else
        return [], [version]

    core = [int(part) for part in match.group(1).split(".")]
    prerelease: List[Union[int, str]] = []
    if match.group(2):
        for ident in match.group(2).split("."):
            prerelease.append(int(ident) if ident.isdigit() else ident)
    return core, prerelease


def _compare_prerelease(a: List[Union[int, str]], b: List[Union[int, str]]) -> int:
    # A release without a prerelease tag is newer than any prerelease
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1

    for left, right in zip(a, b):
        if left == right:
            continue
        if isinstance(left, int) and isinstance(right, int):
            return -1 if left < right else 1
        if isinstance(left, int):
            return -1
        if isinstance(right, int):
            return 1
        return -1 if left < right else 1

    return (len(a) > len(b)) - (len(a) < len(b))


def version_compare(a: str, b: str) -> int:
    """Compare two version strings.

    Args:
        a: First version (e.g., "1.8.2")
        b: Second version (e.g., "1.8.10")

    Returns:
        Negative if a < b, zero if equal, positive if a > b
    """
    core_a, pre_a = _parse(a)
    core_b, pre_b = _parse(b)

    width = max(len(core_a), len(core_b))
    padded_a = core_a + [0] * (width - len(core_a))
    padded_b = core_b + [0] * (width - len(core_b))
    if padded_a != padded_b:
        return -1 if padded_a < padded_b else 1

    if not core_a and not core_b:
        return (str(pre_a) > str(pre_b)) - (str(pre_a) < str(pre_b))

    return _compare_prerelease(pre_a, pre_b)


version_key = functools.cmp_to_key(version_compare)


def sort_versions(versions: List[str]) -> List[str]:
    """Return versions sorted ascending by semantic version."""
    return sorted(versions, key=version_key)
