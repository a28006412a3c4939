from dataclasses import fields
from typing import Any, List

from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    PBXContainerItemProxy,
    PBXFileReference,
    PBXNativeTarget,
    Reference,
    XcodeObject,
)


def validate_references(graph: ObjectGraph) -> List[str]:
    errors = []

    def check_references(obj: Any, context: str):
        if isinstance(obj, Reference):
            if obj.id not in graph:
                errors.append(f"Invalid reference in {context}: {obj.id}")
        elif isinstance(obj, list):
            for index, item in enumerate(obj):
                check_references(item, f"{context}[{index}]")
        elif isinstance(obj, dict):
            for key, value in obj.items():
                check_references(value, f"{context}.{key}")

    for obj in graph:
        for field in fields(obj):
            check_references(getattr(obj, field.name), f"{obj.isa}({obj.id}).{field.name}")
        # proxies name their target by bare identifier
        if isinstance(obj, PBXContainerItemProxy) and obj.remoteGlobalIDString not in graph:
            errors.append(f"Invalid remote object in {obj.isa}({obj.id}): {obj.remoteGlobalIDString}")

    if graph.root_object is None:
        errors.append("Missing root object")
    elif graph.root_object not in graph:
        errors.append(f"Invalid root object: {graph.root_object.id}")

    return errors


def validate_output_paths(graph: ObjectGraph) -> None:
    for target in graph.objects_of_type(PBXNativeTarget):
        if target.productReference is None:
            raise ValueError(f"Target {target.name} has no product reference")

        product_ref: XcodeObject = graph[target.productReference]
        assert isinstance(product_ref, PBXFileReference)
        # Check for invalid filesystem characters
        if any(c in product_ref.path for c in '<>:"|?*'):
            raise ValueError(
                f"Output path '{product_ref.path}' contains invalid filesystem characters"
            )
