# Project description model.
#
# These classes describe the input of a generation run: targets, their
# dependencies and sources, build configurations and settings. They are
# platform independent and carry no Xcode object identities; the compiler in
# generators/xcode turns them into a project graph.

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xcodespec.config import Options


class Linkage(Enum):
    DYNAMIC = "dynamic"
    STATIC = "static"
    NONE = "none"


class Platform(Enum):
    IOS = "iOS"
    TVOS = "tvOS"
    MACOS = "macOS"
    WATCHOS = "watchOS"

    @property
    def carthage_directory_name(self) -> str:
        if self == Platform.MACOS:
            return "Mac"
        return self.value

    # The app store requires simulator slices to be stripped on these platforms
    @property
    def requires_simulator_stripping(self) -> bool:
        return self != Platform.MACOS


class ProductType(Enum):
    APPLICATION = "com.apple.product-type.application"
    FRAMEWORK = "com.apple.product-type.framework"
    DYNAMIC_LIBRARY = "com.apple.product-type.library.dynamic"
    STATIC_LIBRARY = "com.apple.product-type.library.static"
    BUNDLE = "com.apple.product-type.bundle"
    UNIT_TEST_BUNDLE = "com.apple.product-type.bundle.unit-test"
    UI_TEST_BUNDLE = "com.apple.product-type.bundle.ui-testing"
    APP_EXTENSION = "com.apple.product-type.app-extension"
    COMMAND_LINE_TOOL = "com.apple.product-type.tool"
    WATCH_APP = "com.apple.product-type.application.watchapp"
    WATCH2_APP = "com.apple.product-type.application.watchapp2"
    WATCH_EXTENSION = "com.apple.product-type.watchkit-extension"
    WATCH2_EXTENSION = "com.apple.product-type.watchkit2-extension"
    TV_EXTENSION = "com.apple.product-type.tv-app-extension"
    MESSAGES_APPLICATION = "com.apple.product-type.application.messages"
    MESSAGES_EXTENSION = "com.apple.product-type.app-extension.messages"
    STICKER_PACK = "com.apple.product-type.app-extension.messages-sticker-pack"
    XPC_SERVICE = "com.apple.product-type.xpc-service"
    OC_UNIT_TEST = "com.apple.product-type.bundle.ocunit-test"
    XCODE_EXTENSION = "com.apple.product-type.xcode-extension"
    INSTRUMENTS_PACKAGE = "com.apple.product-type.instruments-package"
    INTENTS_SERVICE_EXTENSION = "com.apple.product-type.app-extension.intents-service"

    @staticmethod
    def from_name(name: str) -> "ProductType":
        # accepts "library.static", "com.apple.product-type.library.static"
        # and the member name "STATIC_LIBRARY"
        for candidate in (name, f"com.apple.product-type.{name}"):
            for product_type in ProductType:
                if product_type.value == candidate:
                    return product_type
        if name.upper() in ProductType.__members__:
            return ProductType[name.upper()]
        raise ValueError(f"unknown product type '{name}'")

    @property
    def file_extension(self) -> Optional[str]:
        return _FILE_EXTENSIONS.get(self)

    @property
    def is_app(self) -> bool:
        return self.file_extension == "app"

    @property
    def is_test(self) -> bool:
        return self.file_extension == "xctest"

    @property
    def is_extension(self) -> bool:
        return self.file_extension == "appex"

    @property
    def is_framework(self) -> bool:
        return self == ProductType.FRAMEWORK

    @property
    def is_library(self) -> bool:
        return self in (ProductType.STATIC_LIBRARY, ProductType.DYNAMIC_LIBRARY)

    @property
    def is_executable(self) -> bool:
        return (
            self.is_app
            or self.is_extension
            or self.is_test
            or self == ProductType.COMMAND_LINE_TOOL
        )

    @property
    def default_linkage(self) -> Linkage:
        if self in (ProductType.FRAMEWORK, ProductType.DYNAMIC_LIBRARY):
            return Linkage.DYNAMIC
        if self == ProductType.STATIC_LIBRARY:
            return Linkage.STATIC
        return Linkage.NONE


_FILE_EXTENSIONS: Dict[ProductType, str] = {
    ProductType.APPLICATION: "app",
    ProductType.WATCH_APP: "app",
    ProductType.WATCH2_APP: "app",
    ProductType.MESSAGES_APPLICATION: "app",
    ProductType.FRAMEWORK: "framework",
    ProductType.DYNAMIC_LIBRARY: "dylib",
    ProductType.STATIC_LIBRARY: "a",
    ProductType.BUNDLE: "bundle",
    ProductType.UNIT_TEST_BUNDLE: "xctest",
    ProductType.UI_TEST_BUNDLE: "xctest",
    ProductType.APP_EXTENSION: "appex",
    ProductType.WATCH_EXTENSION: "appex",
    ProductType.WATCH2_EXTENSION: "appex",
    ProductType.TV_EXTENSION: "appex",
    ProductType.MESSAGES_EXTENSION: "appex",
    ProductType.STICKER_PACK: "appex",
    ProductType.XCODE_EXTENSION: "appex",
    ProductType.INTENTS_SERVICE_EXTENSION: "appex",
    ProductType.XPC_SERVICE: "xpc",
    ProductType.OC_UNIT_TEST: "octest",
    ProductType.INSTRUMENTS_PACKAGE: "instrpkg",
}


class DependencyType(Enum):
    TARGET = "target"
    FRAMEWORK = "framework"
    CARTHAGE = "carthage"


@dataclass
class Dependency:
    type: DependencyType
    reference: str
    embed: Optional[bool] = None
    link: Optional[bool] = None
    code_sign: Optional[bool] = None
    remove_headers: bool = True
    implicit: bool = False

    @staticmethod
    def from_dict(values: Dict[str, Any]) -> "Dependency":
        values = dict(values)
        for dependency_type in DependencyType:
            if dependency_type.value in values:
                reference = values.pop(dependency_type.value)
                return Dependency(type=dependency_type, reference=reference, **values)
        raise ValueError(f"dependency has no target, framework or carthage key: {values}")


class BuildPhaseKind(Enum):
    SOURCES = "sources"
    RESOURCES = "resources"
    HEADERS = "headers"
    FRAMEWORKS = "frameworks"
    NONE = "none"


# Destination of a PBXCopyFilesBuildPhase, values are Xcode's dstSubfolderSpec
class CopyFilesDestination(Enum):
    ABSOLUTE_PATH = 0
    WRAPPER = 1
    EXECUTABLES = 6
    RESOURCES = 7
    FRAMEWORKS = 10
    SHARED_FRAMEWORKS = 11
    SHARED_SUPPORT = 12
    PLUGINS = 13
    JAVA_RESOURCES = 15
    PRODUCTS_DIRECTORY = 16


@dataclass(frozen=True)
class CopyFilesSettings:
    destination: CopyFilesDestination
    subpath: str = ""


XPC_SERVICES_COPY_FILES = CopyFilesSettings(
    destination=CopyFilesDestination.PRODUCTS_DIRECTORY,
    subpath="$(CONTENTS_FOLDER_PATH)/XPCServices",
)

BuildPhase = Union[BuildPhaseKind, CopyFilesSettings]


@dataclass
class TargetSource:
    path: str
    build_phase: Optional[BuildPhase] = None
    compiler_flags: List[str] = field(default_factory=list)
    header_visibility: Optional[str] = None


@dataclass
class BuildScript:
    script: Optional[str] = None
    path: Optional[str] = None
    name: Optional[str] = None
    input_files: List[str] = field(default_factory=list)
    output_files: List[str] = field(default_factory=list)
    shell: Optional[str] = None
    run_only_when_installing: bool = False
    show_env_vars: bool = True

    def __post_init__(self) -> None:
        if (self.script is None) == (self.path is None):
            raise ValueError("build script needs exactly one of script or path")


@dataclass
class BuildRule:
    file_type: Optional[str] = None
    pattern: Optional[str] = None
    compiler_spec: Optional[str] = None
    script: Optional[str] = None
    name: Optional[str] = None
    output_files: List[str] = field(default_factory=list)
    output_files_compiler_flags: List[str] = field(default_factory=list)

    SCRIPT_COMPILER_SPEC = "com.apple.compilers.proxy.script"
    PATTERN_FILE_TYPE = "pattern.proxy"

    def __post_init__(self) -> None:
        if (self.file_type is None) == (self.pattern is None):
            raise ValueError("build rule needs exactly one of file_type or pattern")
        if (self.compiler_spec is None) == (self.script is None):
            raise ValueError("build rule needs exactly one of compiler_spec or script")

    @property
    def xcode_file_type(self) -> str:
        return self.file_type if self.file_type is not None else self.PATTERN_FILE_TYPE

    @property
    def xcode_compiler_spec(self) -> str:
        if self.compiler_spec is not None:
            return self.compiler_spec
        return self.SCRIPT_COMPILER_SPEC


@dataclass
class LegacyTarget:
    tool_path: str
    arguments: Optional[str] = None
    pass_settings: bool = False
    working_directory: Optional[str] = None


@dataclass
class BuildConfig:
    name: str
    type: Optional[str] = None


@dataclass
class Settings:
    build_settings: Dict[str, Any] = field(default_factory=dict)
    configs: Dict[str, "Settings"] = field(default_factory=dict)
    groups: List[str] = field(default_factory=list)

    @staticmethod
    def from_value(value: Union[None, Dict[str, Any], "Settings"]) -> "Settings":
        # a plain mapping is build settings, unless it uses the structured keys
        if value is None:
            return Settings()
        if isinstance(value, Settings):
            return value
        if not any(k in value for k in ("base", "configs", "groups")):
            return Settings(build_settings=dict(value))
        return Settings(
            build_settings=dict(value.get("base", {})),
            configs={
                name: Settings.from_value(v)
                for name, v in value.get("configs", {}).items()
            },
            groups=list(value.get("groups", [])),
        )


@dataclass
class Target:
    name: str
    type: ProductType
    platform: Platform
    product_name: Optional[str] = None
    dependencies: List[Dependency] = field(default_factory=list)
    sources: List[TargetSource] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    config_files: Dict[str, str] = field(default_factory=dict)
    prebuild_scripts: List[BuildScript] = field(default_factory=list)
    postbuild_scripts: List[BuildScript] = field(default_factory=list)
    build_rules: List[BuildRule] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    legacy: Optional[LegacyTarget] = None
    transitively_link_dependencies: Optional[bool] = None
    directly_embed_carthage_dependencies: Optional[bool] = None
    requires_objc_linking: Optional[bool] = None

    @property
    def is_legacy(self) -> bool:
        return self.legacy is not None

    @property
    def should_embed_dependencies(self) -> bool:
        return self.type.is_app or self.type.is_test

    @property
    def default_linkage(self) -> Linkage:
        return self.type.default_linkage

    @property
    def filename(self) -> str:
        filename = self.product_name or self.name
        if self.type.file_extension:
            filename += "." + self.type.file_extension
        if self.type == ProductType.STATIC_LIBRARY:
            filename = "lib" + filename
        return filename


@dataclass
class AggregateTarget:
    name: str
    targets: List[str] = field(default_factory=list)
    build_scripts: List[BuildScript] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    config_files: Dict[str, str] = field(default_factory=dict)
    attributes: Dict[str, Any] = field(default_factory=dict)


ProjectTarget = Union[Target, AggregateTarget]


@dataclass
class ProjectSpec:
    name: str
    base_path: Path = field(default_factory=Path)
    targets: List[Target] = field(default_factory=list)
    aggregate_targets: List[AggregateTarget] = field(default_factory=list)
    configs: List[BuildConfig] = field(
        default_factory=lambda: [BuildConfig("Debug", "debug"), BuildConfig("Release", "release")]
    )
    options: Options = field(default_factory=Options)
    settings: Settings = field(default_factory=Settings)
    setting_groups: Dict[str, Settings] = field(default_factory=dict)
    config_files: Dict[str, str] = field(default_factory=dict)
    file_groups: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    xcode_version: str = "9.3"

    def __post_init__(self) -> None:
        self.base_path = Path(self.base_path)
        self._targets_by_name = {t.name: t for t in self.targets}
        self._aggregates_by_name = {t.name: t for t in self.aggregate_targets}

    def get_target(self, name: str) -> Optional[Target]:
        return self._targets_by_name.get(name)

    def get_aggregate_target(self, name: str) -> Optional[AggregateTarget]:
        return self._aggregates_by_name.get(name)

    def get_project_target(self, name: str) -> Optional[ProjectTarget]:
        return self.get_target(name) or self.get_aggregate_target(name)

    def get_config(self, name: str) -> Optional[BuildConfig]:
        for config in self.configs:
            if config.name == name:
                return config
        return None

    # "9.3" -> "0930", the form Xcode stores in LastUpgradeCheck
    @property
    def xcode_version_string(self) -> str:
        parts = self.xcode_version.split(".")
        major = parts[0].zfill(2)
        minor = parts[1] if len(parts) > 1 else "0"
        patch = parts[2] if len(parts) > 2 else "0"
        return f"{major}{minor}{patch}"
