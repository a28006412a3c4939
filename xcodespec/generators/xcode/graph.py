from typing import Dict, Iterator, List, Optional, Type, TypeVar, Union

from xcodespec.generators.xcode.model import (
    PBXProject,
    Reference,
    XcodeID,
    XcodeObject,
    generate_id,
)

ObjectT = TypeVar("ObjectT", bound=XcodeObject)


class ObjectGraph:
    """Owner of every node of a compiled project.

    Nodes are registered under a logical id chosen by the caller; the Xcode
    identifier is derived from the node type and that id, so unchanged input
    produces the same identifiers run after run. A logical id that is reused
    for the same node type gets a counter suffix in registration order.
    Nodes are never removed, and once frozen the graph accepts no new nodes.
    """

    def __init__(self) -> None:
        self._objects: Dict[XcodeID, XcodeObject] = {}
        self._frozen = False
        self.root_object: Optional[Reference[PBXProject]] = None

    def create(self, id: str, obj: ObjectT) -> ObjectT:
        if self._frozen:
            raise RuntimeError(f"cannot add {obj.isa} '{id}' to a frozen graph")
        if obj.id:
            raise RuntimeError(f"{obj.isa} '{id}' is already registered as {obj.id}")
        key = f"{obj.isa}:{id}"
        object_id = generate_id(key)
        counter = 0
        while object_id in self._objects:
            counter += 1
            object_id = generate_id(f"{key}-{counter}")
        obj.id = object_id
        self._objects[object_id] = obj
        return obj

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, ref: Union[Reference, XcodeID, str]) -> Optional[XcodeObject]:
        return self._objects.get(_object_id(ref))

    def __getitem__(self, ref: Union[Reference, XcodeID, str]) -> XcodeObject:
        return self._objects[_object_id(ref)]

    def __contains__(self, ref: Union[Reference, XcodeID, str]) -> bool:
        return _object_id(ref) in self._objects

    def __iter__(self) -> Iterator[XcodeObject]:
        return iter(self._objects.values())

    def __len__(self) -> int:
        return len(self._objects)

    def objects_of_type(self, object_type: Type[ObjectT]) -> List[ObjectT]:
        return [obj for obj in self._objects.values() if isinstance(obj, object_type)]

    @property
    def project(self) -> PBXProject:
        if self.root_object is None:
            raise RuntimeError("graph has no root project object")
        project = self[self.root_object]
        assert isinstance(project, PBXProject)
        return project


def _object_id(ref: Union[Reference, XcodeID, str]) -> XcodeID:
    if isinstance(ref, Reference):
        return ref.id
    return XcodeID(ref)
