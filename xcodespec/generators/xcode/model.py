# Xcode project file model.
#
# This module defines the node types of a compiled Xcode project graph
# (.pbxproj). Nodes refer to each other by Reference; identifiers are
# assigned by the ObjectGraph in graph.py when a node is registered.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

import uuid


# Type definition for Xcode object identifiers
class XcodeID(str):
    pass


def generate_id(key: str) -> XcodeID:
    return XcodeID(uuid.uuid5(uuid.NAMESPACE_X500, key).hex.upper()[:24])


# Source Tree values used in PBXFileReference and PBXGroup
class SourceTree(Enum):
    # GROUP - virtual groups and the main group
    GROUP = "<group>"
    # SOURCE_ROOT - paths relative to the project base path
    SOURCE_ROOT = "SOURCE_ROOT"
    # BUILT_PRODUCTS_DIR - product references and implicit dependencies
    BUILT_PRODUCTS_DIR = "BUILT_PRODUCTS_DIR"


# File types used in PBXFileReference
class FileType(Enum):
    C = "sourcecode.c.c"
    CPP = "sourcecode.cpp.cpp"
    C_HEADER = "sourcecode.c.h"
    CPP_HEADER = "sourcecode.cpp.h"
    SWIFT = "sourcecode.swift"
    OBJC = "sourcecode.c.objc"
    OBJCPP = "sourcecode.cpp.objcpp"
    ASSEMBLY = "sourcecode.asm"
    METAL = "sourcecode.metal"
    XIB = "file.xib"
    STORYBOARD = "file.storyboard"
    PLIST = "text.plist.xml"
    XCCONFIG = "text.xcconfig"
    STRINGS = "text.plist.strings"
    JSON = "text.json"
    PNG = "image.png"
    ENTITLEMENTS = "text.plist.entitlements"
    ASSET_CATALOG = "folder.assetcatalog"
    CORE_DATA_MODEL = "wrapper.xcdatamodel"
    FRAMEWORK = "wrapper.framework"
    BUNDLE = "wrapper.plug-in"
    APP = "wrapper.application"
    APP_EXTENSION = "wrapper.app-extension"
    XPC_SERVICE = "wrapper.xpc-service"
    TEST_BUNDLE = "wrapper.cfbundle"
    DYLIB = "compiled.mach-o.dylib"
    TEXT = "text"
    FOLDER = "folder"
    EXECUTABLE = "compiled.mach-o.executable"
    ARCHIVE = "archive.ar"

    @staticmethod
    def from_extension(ext: str) -> "FileType":
        if ext.startswith("."):
            ext = ext[1:]

        ext_to_type = {
            "c": FileType.C,
            "cpp": FileType.CPP,
            "cc": FileType.CPP,
            "cxx": FileType.CPP,
            "h": FileType.C_HEADER,
            "hpp": FileType.CPP_HEADER,
            "swift": FileType.SWIFT,
            "m": FileType.OBJC,
            "mm": FileType.OBJCPP,
            "s": FileType.ASSEMBLY,
            "metal": FileType.METAL,
            "xib": FileType.XIB,
            "storyboard": FileType.STORYBOARD,
            "plist": FileType.PLIST,
            "xcconfig": FileType.XCCONFIG,
            "strings": FileType.STRINGS,
            "json": FileType.JSON,
            "png": FileType.PNG,
            "entitlements": FileType.ENTITLEMENTS,
            "xcassets": FileType.ASSET_CATALOG,
            "xcdatamodeld": FileType.CORE_DATA_MODEL,
            "framework": FileType.FRAMEWORK,
            "bundle": FileType.BUNDLE,
            "app": FileType.APP,
            "appex": FileType.APP_EXTENSION,
            "xpc": FileType.XPC_SERVICE,
            "xctest": FileType.TEST_BUNDLE,
            "dylib": FileType.DYLIB,
            "a": FileType.ARCHIVE,
        }

        return ext_to_type.get(ext.lower(), FileType.TEXT)

    # Products without an extension are command line tools
    @staticmethod
    def for_product(filename: str) -> "FileType":
        _, dot, ext = filename.rpartition(".")
        if not dot:
            return FileType.EXECUTABLE
        return FileType.from_extension(ext)


class ProxyType(Enum):
    TARGET_DEPENDENCY = 1  # For target dependencies


ReferenceT = TypeVar("ReferenceT", bound="XcodeObject")


@dataclass(frozen=True)
class Reference(Generic[ReferenceT]):
    id: XcodeID
    comment: Optional[str] = field(default=None, compare=False)


# Base class for all Xcode objects
@dataclass(eq=False)
class XcodeObject:
    # ID is assigned by ObjectGraph.create
    id: XcodeID = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.id = XcodeID("")

    @property
    def isa(self) -> str:
        return self.__class__.__name__

    @property
    def comment(self) -> Optional[str]:
        return getattr(self, "name", None)

    @property
    def reference(self) -> Reference:
        if not self.id:
            raise RuntimeError(f"{self.isa} has not been added to a graph")
        return Reference(self.id, self.comment)


# PBX* object types
@dataclass(eq=False)
class PBXFileReference(XcodeObject):
    path: str
    sourceTree: SourceTree
    name: Optional[str] = None
    lastKnownFileType: Optional[FileType] = None
    explicitFileType: Optional[FileType] = None
    includeInIndex: Optional[int] = None

    @property
    def comment(self) -> Optional[str]:
        return self.name or self.path.rsplit("/", 1)[-1]


@dataclass(eq=False)
class PBXGroup(XcodeObject):
    children: List[Reference]
    sourceTree: SourceTree
    name: Optional[str] = None
    path: Optional[str] = None
    usesTabs: Optional[int] = None
    indentWidth: Optional[int] = None
    tabWidth: Optional[int] = None

    @property
    def name_or_path(self) -> str:
        return self.name or self.path or ""

    @property
    def comment(self) -> Optional[str]:
        return self.name_or_path or None


@dataclass(eq=False)
class PBXBuildFile(XcodeObject):
    fileRef: Reference[PBXFileReference]
    settings: Optional[Dict[str, Any]] = None


@dataclass(eq=False)
class PBXBuildPhase(XcodeObject):
    files: List[Reference[PBXBuildFile]]
    buildActionMask: int = 2147483647
    runOnlyForDeploymentPostprocessing: int = 0


@dataclass(eq=False)
class PBXSourcesBuildPhase(PBXBuildPhase):
    @property
    def comment(self) -> Optional[str]:
        return "Sources"


@dataclass(eq=False)
class PBXResourcesBuildPhase(PBXBuildPhase):
    @property
    def comment(self) -> Optional[str]:
        return "Resources"


@dataclass(eq=False)
class PBXHeadersBuildPhase(PBXBuildPhase):
    @property
    def comment(self) -> Optional[str]:
        return "Headers"


@dataclass(eq=False)
class PBXFrameworksBuildPhase(PBXBuildPhase):
    @property
    def comment(self) -> Optional[str]:
        return "Frameworks"


@dataclass(eq=False)
class PBXCopyFilesBuildPhase(PBXBuildPhase):
    dstPath: str = ""
    dstSubfolderSpec: int = 0
    name: Optional[str] = None

    @property
    def comment(self) -> Optional[str]:
        return self.name or "CopyFiles"


@dataclass(eq=False)
class PBXShellScriptBuildPhase(PBXBuildPhase):
    shellScript: str = ""
    name: Optional[str] = None
    inputPaths: List[str] = field(default_factory=list)
    outputPaths: List[str] = field(default_factory=list)
    shellPath: str = "/bin/sh"
    showEnvVarsInLog: Optional[int] = None


@dataclass(eq=False)
class PBXBuildRule(XcodeObject):
    compilerSpec: str
    fileType: str
    isEditable: int
    filePatterns: Optional[str] = None
    name: Optional[str] = None
    outputFiles: List[str] = field(default_factory=list)
    outputFilesCompilerFlags: List[str] = field(default_factory=list)
    script: Optional[str] = None


@dataclass(eq=False)
class PBXContainerItemProxy(XcodeObject):
    containerPortal: Reference  # the PBXProject
    remoteGlobalIDString: XcodeID  # ID of the referenced item
    remoteInfo: str  # Name of the referenced item
    proxyType: ProxyType = ProxyType.TARGET_DEPENDENCY

    @property
    def comment(self) -> Optional[str]:
        return "PBXContainerItemProxy"


@dataclass(eq=False)
class PBXTargetDependency(XcodeObject):
    target: Reference
    targetProxy: Reference[PBXContainerItemProxy]

    @property
    def comment(self) -> Optional[str]:
        return "PBXTargetDependency"


@dataclass(eq=False)
class XCBuildConfiguration(XcodeObject):
    name: str
    buildSettings: Dict[str, Any]
    baseConfigurationReference: Optional[Reference[PBXFileReference]] = None


@dataclass(eq=False)
class XCConfigurationList(XcodeObject):
    buildConfigurations: List[Reference[XCBuildConfiguration]]
    defaultConfigurationName: str = ""
    defaultConfigurationIsVisible: int = 0

    @property
    def comment(self) -> Optional[str]:
        return "Build configuration list"


@dataclass(eq=False)
class PBXTarget(XcodeObject):
    name: str
    buildConfigurationList: Optional[Reference[XCConfigurationList]] = None
    buildPhases: List[Reference[PBXBuildPhase]] = field(default_factory=list)
    buildRules: List[Reference[PBXBuildRule]] = field(default_factory=list)
    dependencies: List[Reference[PBXTargetDependency]] = field(default_factory=list)
    productName: Optional[str] = None


@dataclass(eq=False)
class PBXNativeTarget(PBXTarget):
    productReference: Optional[Reference[PBXFileReference]] = None
    productType: Optional[str] = None


@dataclass(eq=False)
class PBXLegacyTarget(PBXTarget):
    buildToolPath: Optional[str] = None
    buildArgumentsString: Optional[str] = None
    passBuildSettingsInEnvironment: int = 0
    buildWorkingDirectory: Optional[str] = None


@dataclass(eq=False)
class PBXAggregateTarget(PBXTarget):
    pass


@dataclass(eq=False)
class PBXProject(XcodeObject):
    name: str
    buildConfigurationList: Reference[XCConfigurationList]
    mainGroup: Reference[PBXGroup]
    productRefGroup: Optional[Reference[PBXGroup]] = None
    targets: List[Reference[PBXTarget]] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    compatibilityVersion: str = "Xcode 3.2"
    developmentRegion: str = "en"
    hasScannedForEncodings: int = 0
    knownRegions: List[str] = field(default_factory=list)
    projectDirPath: str = ""
    projectRoot: str = ""

    @property
    def comment(self) -> Optional[str]:
        return "Project object"
