# Source file resolution.
#
# Turns the source paths of targets and file groups into file references and
# navigator groups. File references always use SOURCE_ROOT relative paths
# (or BUILT_PRODUCTS_DIR for implicit products) so that groups can stay
# purely virtual.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from xcodespec.details.spec import (
    BuildPhase,
    BuildPhaseKind,
    ProductType,
    ProjectSpec,
    TargetSource,
)
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    FileType,
    PBXFileReference,
    PBXGroup,
    Reference,
    SourceTree,
    XcodeID,
)

logger = logging.getLogger(__name__)

# Extensions that Xcode can compile (add to sources build phase)
COMPILABLE_EXTENSIONS = frozenset(
    {
        # C/C++
        ".c",
        ".cc",
        ".cpp",
        ".cxx",
        # Objective-C/C++
        ".m",
        ".mm",
        # Assembly
        ".s",
        # Swift
        ".swift",
        # Metal and Core Data models
        ".metal",
        ".xcdatamodeld",
    }
)

HEADER_EXTENSIONS = frozenset({".h", ".hh", ".hpp", ".hxx", ".ipp", ".tpp", ".def"})

# Files that belong to the project but to no build phase
UNBUILT_EXTENSIONS = frozenset({".xcconfig", ".entitlements", ".modulemap", ".md"})

# Directories that Xcode treats as a single file
FILE_LIKE_DIRECTORY_EXTENSIONS = frozenset(
    {".xcassets", ".xcdatamodeld", ".framework", ".bundle", ".playground", ".scnassets"}
)


@dataclass
class SourceFile:
    path: str  # relative to the project base path
    file_reference: Reference[PBXFileReference]
    build_phase: Optional[BuildPhase]
    settings: Optional[Dict[str, Any]] = None


def default_build_phase(path: str) -> Optional[BuildPhaseKind]:
    name = os.path.basename(path)
    ext = os.path.splitext(name)[1].lower()
    if name == "Info.plist" or ext in UNBUILT_EXTENSIONS:
        return None
    if ext in COMPILABLE_EXTENSIONS:
        return BuildPhaseKind.SOURCES
    if ext in HEADER_EXTENSIONS:
        return BuildPhaseKind.HEADERS
    if ext == ".framework":
        return BuildPhaseKind.FRAMEWORKS
    return BuildPhaseKind.RESOURCES


class SourceGenerator:
    def __init__(self, project: ProjectSpec, graph: ObjectGraph):
        self.project = project
        self.graph = graph
        self.known_regions: Set[str] = set()
        self._file_references: Dict[Tuple[str, SourceTree], Reference] = {}
        self._groups: Dict[str, PBXGroup] = {}
        self._root_groups: List[Reference] = []
        self._grouped: Set[XcodeID] = set()

    @property
    def root_groups(self) -> List[Reference]:
        return list(self._root_groups)

    def _relative(self, path: Union[str, Path]) -> str:
        relative = os.path.relpath(os.path.abspath(path), os.path.abspath(self.project.base_path))
        return Path(relative).as_posix()

    def _add_root(self, ref: Reference) -> None:
        if ref not in self._root_groups:
            self._root_groups.append(ref)
            self._grouped.add(ref.id)

    def _add_child(self, group: PBXGroup, ref: Reference) -> None:
        if ref not in group.children:
            group.children.append(ref)
            self._grouped.add(ref.id)

    def get_file_reference(
        self,
        path: Union[str, Path],
        source_tree: SourceTree = SourceTree.SOURCE_ROOT,
    ) -> Reference[PBXFileReference]:
        """File reference for a path, the same reference for repeated calls."""
        if source_tree == SourceTree.BUILT_PRODUCTS_DIR:
            relative = Path(path).as_posix()
        else:
            relative = self._relative(path)
        key = (relative, source_tree)
        if key not in self._file_references:
            name = os.path.basename(relative)
            file_reference = self.graph.create(
                f"{source_tree.name}:{relative}",
                PBXFileReference(
                    path=relative,
                    sourceTree=source_tree,
                    name=name if name != relative else None,
                    lastKnownFileType=FileType.from_extension(os.path.splitext(name)[1]),
                ),
            )
            self._file_references[key] = file_reference.reference
        return self._file_references[key]

    def get_contained_file_reference(self, path: Union[str, Path]) -> Reference[PBXFileReference]:
        """File reference for a standalone file, shown at the top level when no
        source group already contains it."""
        ref = self.get_file_reference(path)
        if ref.id not in self._grouped:
            self._add_root(ref)
        return ref

    def _get_group(self, directory: str) -> PBXGroup:
        if directory not in self._groups:
            self._groups[directory] = self.graph.create(
                f"group:{directory}",
                PBXGroup(children=[], sourceTree=SourceTree.GROUP, name=os.path.basename(directory)),
            )
        return self._groups[directory]

    def _walk_directory(
        self,
        directory: Path,
        on_file,
    ) -> Reference[PBXGroup]:
        relative = self._relative(directory)
        group = self._get_group(relative)
        for entry in sorted(os.listdir(directory)):
            if entry.startswith("."):
                continue
            child = directory / entry
            if child.is_dir() and child.suffix not in FILE_LIKE_DIRECTORY_EXTENSIONS:
                if child.suffix == ".lproj":
                    self.known_regions.add(child.stem)
                self._add_child(group, self._walk_directory(child, on_file))
            else:
                ref = self.get_file_reference(child)
                self._add_child(group, ref)
                on_file(child, ref)
        return group.reference

    def get_file_groups(self, path: Union[str, Path]) -> None:
        full_path = self.project.base_path / path
        if full_path.is_dir() and full_path.suffix not in FILE_LIKE_DIRECTORY_EXTENSIONS:
            self._add_root(self._walk_directory(full_path, lambda *_: None))
        else:
            self._add_root(self.get_file_reference(full_path))

    def get_all_source_files(
        self, target_type: ProductType, sources: List[TargetSource]
    ) -> List[SourceFile]:
        source_files: List[SourceFile] = []

        for source in sources:

            def on_file(path: Path, ref: Reference, source: TargetSource = source) -> None:
                source_files.append(self._source_file(source, self._relative(path), ref))

            full_path = self.project.base_path / source.path
            if full_path.is_dir() and full_path.suffix not in FILE_LIKE_DIRECTORY_EXTENSIONS:
                self._add_root(self._walk_directory(full_path, on_file))
            else:
                ref = self.get_file_reference(full_path)
                if ref.id not in self._grouped:
                    self._add_root(ref)
                on_file(full_path, ref)

        logger.debug(
            "resolved %d source files for %s target", len(source_files), target_type.name
        )
        return source_files

    def _source_file(self, source: TargetSource, path: str, ref: Reference) -> SourceFile:
        build_phase = source.build_phase if source.build_phase is not None else default_build_phase(path)
        if build_phase == BuildPhaseKind.NONE:
            build_phase = None
        settings: Optional[Dict[str, Any]] = None
        if build_phase == BuildPhaseKind.SOURCES and source.compiler_flags:
            settings = {"COMPILER_FLAGS": " ".join(source.compiler_flags)}
        elif build_phase == BuildPhaseKind.HEADERS:
            visibility = source.header_visibility or "public"
            if visibility != "project":
                settings = {"ATTRIBUTES": [visibility.capitalize()]}
        return SourceFile(path=path, file_reference=ref, build_phase=build_phase, settings=settings)
