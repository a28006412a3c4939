from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from xcodespec.config import Options
from xcodespec.details.spec import (
    AggregateTarget,
    BuildConfig,
    BuildPhase,
    BuildPhaseKind,
    BuildRule,
    BuildScript,
    CopyFilesDestination,
    CopyFilesSettings,
    Dependency,
    LegacyTarget,
    Platform,
    ProductType,
    ProjectSpec,
    Settings,
    Target,
    TargetSource,
)


def _dependency(value: Union[Dependency, Dict[str, Any]]) -> Dependency:
    if isinstance(value, Dependency):
        return value
    return Dependency.from_dict(value)


def _build_phase(value: Union[None, str, Dict[str, Any], BuildPhase]) -> Optional[BuildPhase]:
    if value is None or isinstance(value, (BuildPhaseKind, CopyFilesSettings)):
        return value
    if isinstance(value, str):
        return BuildPhaseKind(value)
    copy_files = value["copy_files"]
    return CopyFilesSettings(
        destination=CopyFilesDestination[copy_files["destination"].upper()],
        subpath=copy_files.get("subpath", ""),
    )


def _source(value: Union[str, TargetSource, Dict[str, Any]]) -> TargetSource:
    if isinstance(value, TargetSource):
        return value
    if isinstance(value, str):
        return TargetSource(path=value)
    values = dict(value)
    values["build_phase"] = _build_phase(values.get("build_phase"))
    return TargetSource(**values)


def _script(value: Union[str, BuildScript, Dict[str, Any]]) -> BuildScript:
    if isinstance(value, BuildScript):
        return value
    if isinstance(value, str):
        return BuildScript(script=value)
    return BuildScript(**value)


def _build_rule(value: Union[BuildRule, Dict[str, Any]]) -> BuildRule:
    if isinstance(value, BuildRule):
        return value
    return BuildRule(**value)


def _legacy(value: Union[None, LegacyTarget, Dict[str, Any]]) -> Optional[LegacyTarget]:
    if value is None or isinstance(value, LegacyTarget):
        return value
    return LegacyTarget(**value)


class Context:
    def __init__(self, root: Path):
        self.root = root


class ProjectContext(Context):
    FILENAME = "PROJECT.xcodespec"
    MODULENAME = "project"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.name: Optional[str] = None
        self.xcode_version: Optional[str] = None
        self.options = Options()
        self.configs: Dict[str, BuildConfig] = {}
        self.targets: Dict[str, Target] = {}
        self.aggregate_targets: Dict[str, AggregateTarget] = {}
        self.settings = Settings()
        self.setting_groups: Dict[str, Settings] = {}
        self.config_files: Dict[str, str] = {}
        self.file_groups: List[str] = []
        self.attributes: Dict[str, Any] = {}

    def set_name(self, name: str, xcode_version: Optional[str] = None):
        self.name = name
        self.xcode_version = xcode_version

    def set_options(self, **kwargs):
        self.options = Options(**kwargs)

    def add_config(self, name: str, type: Optional[str] = None):
        if name in self.configs:
            raise RuntimeError(f"config {name} has already been registered")
        self.configs[name] = BuildConfig(name=name, type=type)

    def _check_target_name(self, name: str):
        if name in self.targets or name in self.aggregate_targets:
            raise RuntimeError(f"target {name} has already been registered")

    def add_target(
        self,
        name: str,
        type: Union[str, ProductType],
        platform: Union[str, Platform],
        dependencies: Iterable[Union[Dependency, Dict[str, Any]]] = (),
        sources: Iterable[Union[str, TargetSource, Dict[str, Any]]] = (),
        settings: Union[None, Dict[str, Any], Settings] = None,
        prebuild_scripts: Iterable[Union[str, BuildScript, Dict[str, Any]]] = (),
        postbuild_scripts: Iterable[Union[str, BuildScript, Dict[str, Any]]] = (),
        build_rules: Iterable[Union[BuildRule, Dict[str, Any]]] = (),
        legacy: Union[None, LegacyTarget, Dict[str, Any]] = None,
        **kwargs,
    ) -> Target:
        self._check_target_name(name)
        target = Target(
            name=name,
            type=type if isinstance(type, ProductType) else ProductType.from_name(type),
            platform=Platform(platform),
            dependencies=[_dependency(d) for d in dependencies],
            sources=[_source(s) for s in sources],
            settings=Settings.from_value(settings),
            prebuild_scripts=[_script(s) for s in prebuild_scripts],
            postbuild_scripts=[_script(s) for s in postbuild_scripts],
            build_rules=[_build_rule(r) for r in build_rules],
            legacy=_legacy(legacy),
            **kwargs,
        )
        self.targets[name] = target
        return target

    def add_aggregate_target(
        self,
        name: str,
        targets: Iterable[str] = (),
        build_scripts: Iterable[Union[str, BuildScript, Dict[str, Any]]] = (),
        settings: Union[None, Dict[str, Any], Settings] = None,
        **kwargs,
    ) -> AggregateTarget:
        self._check_target_name(name)
        target = AggregateTarget(
            name=name,
            targets=list(targets),
            build_scripts=[_script(s) for s in build_scripts],
            settings=Settings.from_value(settings),
            **kwargs,
        )
        self.aggregate_targets[name] = target
        return target

    def add_setting_group(self, name: str, settings: Union[Dict[str, Any], Settings]):
        if name in self.setting_groups:
            raise RuntimeError(f"setting group {name} has already been registered")
        self.setting_groups[name] = Settings.from_value(settings)

    def set_settings(self, settings: Union[Dict[str, Any], Settings]):
        self.settings = Settings.from_value(settings)

    def add_config_file(self, config: str, path: str):
        self.config_files[config] = path

    def add_file_group(self, path: str):
        self.file_groups.append(path)

    def set_attributes(self, **attributes):
        self.attributes.update(attributes)

    def to_project(self) -> ProjectSpec:
        values: Dict[str, Any] = {}
        if self.configs:
            values["configs"] = list(self.configs.values())
        if self.xcode_version is not None:
            values["xcode_version"] = self.xcode_version
        return ProjectSpec(
            name=self.name or self.root.resolve().name,
            base_path=self.root,
            targets=list(self.targets.values()),
            aggregate_targets=list(self.aggregate_targets.values()),
            options=self.options,
            settings=self.settings,
            setting_groups=dict(self.setting_groups),
            config_files=dict(self.config_files),
            file_groups=list(self.file_groups),
            attributes=dict(self.attributes),
            **values,
        )
