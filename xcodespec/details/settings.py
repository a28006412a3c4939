# Build settings resolution.
#
# Settings are resolved per (target, configuration): setting groups first,
# then the base settings, then every config-variant block matching the
# configuration. Inferred settings are layered on top by
# TargetSettingsSynthesizer, never replacing a value the user set.

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from xcodespec.details.spec import (
    BuildConfig,
    DependencyType,
    ProductType,
    ProjectSpec,
    ProjectTarget,
    Settings,
    Target,
)

INHERITED = "$(inherited)"
OBJC_LINKER_FLAG = "-ObjC"

# Target attributes that mirror a build setting when all configs agree
MIRRORED_ATTRIBUTES = {
    "ProvisioningStyle": "CODE_SIGN_STYLE",
    "DevelopmentTeam": "DEVELOPMENT_TEAM",
}


def get_build_settings(
    project: ProjectSpec, settings: Settings, config: BuildConfig
) -> Dict[str, Any]:
    build_settings: Dict[str, Any] = {}
    for group_name in settings.groups:
        group = project.setting_groups.get(group_name)
        if group is not None:
            build_settings.update(get_build_settings(project, group, config))
    build_settings.update(settings.build_settings)
    for variant, variant_settings in settings.configs.items():
        if variant.lower() not in config.name.lower():
            continue
        # "Debug" must not apply to "Staging Debug" when a "Debug" config exists
        # and is not this one
        exact = project.get_config(variant)
        if exact is not None and exact.name != config.name:
            continue
        build_settings.update(get_build_settings(project, variant_settings, config))
    return build_settings


def get_project_build_settings(project: ProjectSpec, config: BuildConfig) -> Dict[str, Any]:
    return get_build_settings(project, project.settings, config)


def get_target_build_settings(
    project: ProjectSpec, target: ProjectTarget, config: BuildConfig
) -> Dict[str, Any]:
    return get_build_settings(project, target.settings, config)


def get_combined_build_settings(
    project: ProjectSpec, target: ProjectTarget, config: BuildConfig
) -> Dict[str, Any]:
    """Every setting that applies to a target configuration, as Xcode layers
    them: project settings, project base settings file, target base settings
    file, target settings."""
    settings = get_project_build_settings(project, config)
    if config.name in project.config_files:
        settings.update(load_xcconfig(project.base_path / project.config_files[config.name]))
    if config.name in target.config_files:
        settings.update(load_xcconfig(project.base_path / target.config_files[config.name]))
    settings.update(get_target_build_settings(project, target, config))
    return settings


def target_has_build_setting(
    project: ProjectSpec, target: ProjectTarget, config: BuildConfig, key: str
) -> bool:
    return key in get_combined_build_settings(project, target, config)


def load_xcconfig(path: Path, _seen: Optional[set] = None) -> Dict[str, str]:
    settings: Dict[str, str] = {}
    seen = _seen if _seen is not None else set()
    path = Path(path)
    if path.resolve() in seen or not path.is_file():
        return settings
    seen.add(path.resolve())
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.split("//", 1)[0].strip()
            if not line:
                continue
            if line.startswith("#include"):
                include = line[len("#include"):].strip().lstrip("?").strip().strip('"')
                settings.update(load_xcconfig(path.parent / include, seen))
                continue
            key, sep, value = line.partition("=")
            if sep:
                settings[key.strip()] = value.strip().rstrip(";").strip()
    return settings


def append_setting_values(settings: Dict[str, Any], key: str, values: List[str]) -> None:
    """Append values to a setting, keeping whatever shape the user gave it.

    A list is extended, a scalar becomes [scalar, *values] and a missing
    setting is seeded with $(inherited) so values from lower levels survive.
    Lists may be shared with the project description, so they are copied
    rather than mutated.
    """
    existing = settings.get(key)
    if isinstance(existing, list):
        settings[key] = [*existing, *values]
    elif isinstance(existing, str):
        settings[key] = [existing, *values]
    else:
        settings[key] = [INHERITED, *values]


def sanitize_bundle_id_component(name: str) -> str:
    name = name.replace("_", "-")
    return "".join(c for c in name if c.isalnum() or c in "-.")


def find_info_plist(project: ProjectSpec, target: Target) -> Optional[str]:
    for source in target.sources:
        path = project.base_path / source.path
        if path.is_file():
            if path.name == "Info.plist":
                return source.path
            continue
        for root, dirs, files in os.walk(path):
            dirs.sort()
            if "Info.plist" in files:
                found = Path(root, "Info.plist")
                return found.relative_to(project.base_path).as_posix()
    return None


class TargetSettingsSynthesizer:
    def __init__(self, project: ProjectSpec, target: Target):
        self.project = project
        self.target = target
        self._info_plist: Optional[str] = None
        self._search_info_plist = True

    def info_plist(self) -> Optional[str]:
        # searched lazily, at most once per target
        if self._search_info_plist:
            self._info_plist = find_info_plist(self.project, self.target)
            self._search_info_plist = False
        return self._info_plist

    def test_target_name(self) -> Optional[str]:
        for dependency in self.target.dependencies:
            if dependency.type != DependencyType.TARGET:
                continue
            dependency_target = self.project.get_target(dependency.reference)
            if dependency_target is not None and dependency_target.type == ProductType.APPLICATION:
                return dependency_target.name
        return None

    def synthesize(
        self,
        config: BuildConfig,
        requires_objc_linking: bool = False,
        framework_search_paths: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        project, target = self.project, self.target
        settings = get_target_build_settings(project, target, config)

        def is_set(key: str) -> bool:
            return target_has_build_setting(project, target, config, key)

        if is_set("INFOPLIST_FILE"):
            # an explicit plist in one config ends the search for later ones
            self._search_info_plist = False
        else:
            plist = self.info_plist()
            if plist is not None:
                settings["INFOPLIST_FILE"] = plist

        prefix = project.options.bundle_id_prefix
        if prefix and not is_set("PRODUCT_BUNDLE_IDENTIFIER"):
            settings["PRODUCT_BUNDLE_IDENTIFIER"] = (
                prefix + "." + sanitize_bundle_id_component(target.name)
            )

        if target.type == ProductType.UI_TEST_BUNDLE and not is_set("TEST_TARGET_NAME"):
            test_target_name = self.test_target_name()
            if test_target_name is not None:
                settings["TEST_TARGET_NAME"] = test_target_name

        if requires_objc_linking:
            append_setting_values(settings, "OTHER_LDFLAGS", [OBJC_LINKER_FLAG])

        if framework_search_paths:
            append_setting_values(settings, "FRAMEWORK_SEARCH_PATHS", list(framework_search_paths))

        return settings


def get_single_build_setting(
    project: ProjectSpec, target: ProjectTarget, key: str
) -> Optional[str]:
    values = [
        get_combined_build_settings(project, target, config).get(key)
        for config in project.configs
    ]
    if not values or not all(isinstance(v, str) for v in values):
        return None
    if any(v != values[0] for v in values):
        return None
    return values[0]


def infer_target_attributes(project: ProjectSpec, target: ProjectTarget) -> Dict[str, Any]:
    attributes = dict(target.attributes)
    for attribute, setting in MIRRORED_ATTRIBUTES.items():
        value = get_single_build_setting(project, target, setting)
        if value is not None:
            attributes[attribute] = value
    return attributes
