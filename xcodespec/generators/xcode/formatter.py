"""
Xcode project file formatter.

This module converts a compiled ObjectGraph into the text of a project.pbxproj
file (an old-style plist). Objects are written grouped by isa, each section
sorted by identifier, so the output only depends on the graph's content.
"""

import dataclasses
import enum
import re
from typing import Any, Dict, List, Union

from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    PBXBuildFile,
    Reference,
    XcodeID,
    XcodeObject,
)

OBJECT_VERSION = 50

# Strings made only of these characters are written without quotes
_UNQUOTED = re.compile(r"^[A-Za-z0-9_$/:.]+$")

FormattableValue = Union[None, Reference, dict, list, enum.Enum, int, float, bool, str, XcodeID]


def format_project_graph(graph: ObjectGraph) -> str:
    """
    Convert a compiled graph to its project.pbxproj representation.

    Args:
        graph: The frozen ObjectGraph, with its root_object set.

    Returns:
        A string containing the formatted Xcode project file content.
    """
    if graph.root_object is None:
        raise ValueError("graph has no root object")

    lines = ["// !$*UTF8*$!", "{"]
    lines.append("\tarchiveVersion = 1;")
    lines.append("\tclasses = {\n\t};")
    lines.append(f"\tobjectVersion = {OBJECT_VERSION};")
    lines.append("\tobjects = {")

    sections: Dict[str, List[XcodeObject]] = {}
    for obj in graph:
        sections.setdefault(obj.isa, []).append(obj)
    for isa in sorted(sections):
        lines.append("")
        lines.append(f"/* Begin {isa} section */")
        for obj in sorted(sections[isa], key=lambda o: o.id):
            body = format_dict(object_properties(obj), 2)
            lines.append(f"\t\t{format_id(obj.id, object_comment(graph, obj))} = {body};")
        lines.append(f"/* End {isa} section */")

    lines.append("\t};")
    lines.append(f"\trootObject = {format_value(graph.root_object, 1)};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def object_comment(graph: ObjectGraph, obj: XcodeObject) -> Union[str, None]:
    # build files are annotated with the file they wrap
    if isinstance(obj, PBXBuildFile):
        file_reference = graph.get(obj.fileRef)
        return file_reference.comment if file_reference is not None else None
    return obj.comment


def object_properties(obj: XcodeObject) -> Dict[str, Any]:
    props: Dict[str, Any] = {"isa": obj.isa}
    for field in dataclasses.fields(obj):
        if field.name == "id":
            continue
        value = getattr(obj, field.name)
        if value is None:
            continue
        props[field.name] = value
    return props


def format_id(id: str, comment: Union[str, None]) -> str:
    if comment:
        return f"{id} /* {comment} */"
    return id


def format_string(value: str) -> str:
    if _UNQUOTED.match(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def format_value(value: FormattableValue, indent_level: int) -> str:
    """
    Format a value based on its type.

    Args:
        value: The value to format.
        indent_level: The current indentation level.

    Returns:
        A string representing the formatted value.
    """
    if value is None:
        return '""'
    elif isinstance(value, Reference):
        return format_id(value.id, value.comment)
    elif isinstance(value, XcodeID):
        return str(value)
    elif isinstance(value, enum.Enum):
        return format_value(value.value, indent_level)
    elif isinstance(value, list):
        return format_list(value, indent_level)
    elif isinstance(value, dict):
        return format_dict(value, indent_level)
    # Xcode represents booleans as 0/1
    elif isinstance(value, bool):
        return "1" if value else "0"
    elif isinstance(value, (int, float)):
        return str(value)
    elif isinstance(value, str):
        return format_string(value)
    else:
        raise TypeError(f"Unsupported type: {type(value).__name__} for value: {value}")


def format_dict(value_dict: Dict[str, FormattableValue], indent_level: int) -> str:
    indent = "\t" * indent_level
    inner_indent = "\t" * (indent_level + 1)

    # Empty dictionaries should have braces on separate lines for Xcode compatibility
    if not value_dict:
        return "{\n" + indent + "}"

    result = "{\n"
    keys = sorted(value_dict.keys())
    # isa always leads an object
    if "isa" in value_dict:
        keys.remove("isa")
        keys.insert(0, "isa")
    for key in keys:
        value = value_dict[key]
        if value is None:
            continue
        result += f"{inner_indent}{format_string(str(key))} = {format_value(value, indent_level + 1)};\n"
    result += f"{indent}}}"
    return result


def format_list(value_list: List[FormattableValue], indent_level: int) -> str:
    if not value_list:
        return "(\n" + "\t" * indent_level + ")"

    indent = "\t" * indent_level
    inner_indent = "\t" * (indent_level + 1)

    result = "(\n"
    for item in value_list:
        result += f"{inner_indent}{format_value(item, indent_level + 1)},\n"
    result += f"{indent})"
    return result
