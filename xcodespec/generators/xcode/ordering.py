# Deterministic ordering of groups and targets.
#
# Xcode shows group children in stored order, so the compiler sorts them
# the way Finder does: case-insensitive, with embedded numbers compared by
# value ("file2" before "file10").

import locale
import re
from typing import Any, List, Tuple

from xcodespec.config import GroupSortPosition
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    PBXFileReference,
    PBXGroup,
    PBXTarget,
    Reference,
    XcodeObject,
)

_NUMBERS = re.compile(r"([0-9]+)")


def localized_standard_key(name: str) -> Tuple[Any, ...]:
    parts = _NUMBERS.split(name.casefold())
    key: List[Tuple[int, int, str]] = []
    for index, part in enumerate(parts):
        # split with a capture group puts the numbers at odd indices
        if index % 2:
            key.append((0, int(part), ""))
        elif part:
            key.append((1, 0, locale.strxfrm(part)))
    # names equal but for case still get a stable order
    return (tuple(key), name)


def display_name(obj: XcodeObject) -> str:
    if isinstance(obj, PBXGroup):
        return obj.name_or_path
    if isinstance(obj, PBXFileReference):
        return obj.name or obj.path
    return getattr(obj, "name", None) or ""


def sort_order(obj: XcodeObject, position: GroupSortPosition) -> int:
    if not isinstance(obj, PBXGroup):
        return 0
    if position == GroupSortPosition.TOP:
        return -1
    if position == GroupSortPosition.BOTTOM:
        return 1
    return 0


def sort_group(graph: ObjectGraph, group: PBXGroup, position: GroupSortPosition) -> None:
    children = [child for child in group.children if child.id != group.id]

    def key(ref: Reference) -> Tuple[int, Tuple[Any, ...]]:
        obj = graph[ref]
        return (sort_order(obj, position), localized_standard_key(display_name(obj)))

    children.sort(key=key)
    group.children = children
    for child in children:
        obj = graph[child]
        if isinstance(obj, PBXGroup):
            sort_group(graph, obj, position)


def sort_derived_groups(graph: ObjectGraph, groups: List[Reference[PBXGroup]]) -> List[Reference[PBXGroup]]:
    return sorted(groups, key=lambda ref: localized_standard_key(display_name(graph[ref])))


def sort_targets(graph: ObjectGraph, targets: List[Reference[PBXTarget]]) -> List[Reference[PBXTarget]]:
    return sorted(targets, key=lambda ref: display_name(graph[ref]))
