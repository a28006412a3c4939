from pathlib import Path

import pytest

from xcodespec.config import Options
from xcodespec.details import settings as settings_module
from xcodespec.details.settings import (
    TargetSettingsSynthesizer,
    append_setting_values,
    find_info_plist,
    get_build_settings,
    get_combined_build_settings,
    infer_target_attributes,
    load_xcconfig,
    sanitize_bundle_id_component,
    target_has_build_setting,
)
from xcodespec.details.spec import (
    BuildConfig,
    Dependency,
    DependencyType,
    Platform,
    ProductType,
    ProjectSpec,
    Settings,
    Target,
    TargetSource,
)


def _project(tmp_path: Path, *targets: Target, **kwargs) -> ProjectSpec:
    return ProjectSpec(name="Test", base_path=tmp_path, targets=list(targets), **kwargs)


def _app(name="App", **kwargs) -> Target:
    return Target(name=name, type=ProductType.APPLICATION, platform=Platform.IOS, **kwargs)


class TestAppendSettingValues:
    def test_absent_setting_is_seeded_with_inherited(self) -> None:
        settings = {}
        append_setting_values(settings, "OTHER_LDFLAGS", ["-ObjC"])
        assert settings["OTHER_LDFLAGS"] == ["$(inherited)", "-ObjC"]

    def test_scalar_setting_becomes_two_element_list(self) -> None:
        settings = {"OTHER_LDFLAGS": "-lz"}
        append_setting_values(settings, "OTHER_LDFLAGS", ["-ObjC"])
        assert settings["OTHER_LDFLAGS"] == ["-lz", "-ObjC"]

    def test_list_setting_is_extended_without_touching_the_original(self) -> None:
        original = ["-lz", "-lc++"]
        settings = {"OTHER_LDFLAGS": original}
        append_setting_values(settings, "OTHER_LDFLAGS", ["-ObjC"])
        assert settings["OTHER_LDFLAGS"] == ["-lz", "-lc++", "-ObjC"]
        assert original == ["-lz", "-lc++"]


class TestBuildSettings:
    def test_groups_then_base_then_config_variants(self, tmp_path: Path) -> None:
        project = _project(tmp_path, setting_groups={"common": Settings({"A": "group", "B": "group"})})
        settings = Settings(
            build_settings={"B": "base", "C": "base"},
            configs={"Debug": Settings({"C": "debug"})},
            groups=["common"],
        )

        debug = get_build_settings(project, settings, BuildConfig("Debug", "debug"))
        release = get_build_settings(project, settings, BuildConfig("Release", "release"))

        assert debug == {"A": "group", "B": "base", "C": "debug"}
        assert release == {"A": "group", "B": "base", "C": "base"}

    def test_variant_matches_substring_unless_another_config_has_that_name(self, tmp_path: Path) -> None:
        configs = [BuildConfig("Debug", "debug"), BuildConfig("Staging Debug", "debug"), BuildConfig("Release", "release")]
        project = _project(tmp_path, configs=configs)
        settings = Settings(configs={"Debug": Settings({"D": "1"}), "staging": Settings({"S": "1"})})

        assert get_build_settings(project, settings, configs[0]) == {"D": "1"}
        assert get_build_settings(project, settings, configs[1]) == {"S": "1"}
        assert get_build_settings(project, settings, configs[2]) == {}

    def test_settings_from_plain_mapping(self) -> None:
        assert Settings.from_value({"SWIFT_VERSION": "5.0"}).build_settings == {"SWIFT_VERSION": "5.0"}
        structured = Settings.from_value({"base": {"A": "1"}, "configs": {"Debug": {"B": "2"}}})
        assert structured.build_settings == {"A": "1"}
        assert structured.configs["Debug"].build_settings == {"B": "2"}

    def test_combined_settings_include_config_files(self, write_files) -> None:
        root = write_files(
            contents={
                "Configs/base.xcconfig": "SWIFT_VERSION = 4.2\n",
                "Configs/app.xcconfig": '#include "base.xcconfig"\n// signing\nDEVELOPMENT_TEAM = ABC123 // team\n',
            }
        )
        target = _app(config_files={"Debug": "Configs/app.xcconfig"})
        project = _project(root, target, settings=Settings({"SWIFT_VERSION": "4.0"}))
        debug = project.configs[0]

        combined = get_combined_build_settings(project, target, debug)

        assert combined["SWIFT_VERSION"] == "4.2"
        assert combined["DEVELOPMENT_TEAM"] == "ABC123"
        assert target_has_build_setting(project, target, debug, "DEVELOPMENT_TEAM")
        assert not target_has_build_setting(project, target, project.configs[1], "DEVELOPMENT_TEAM")

    def test_missing_config_file_contributes_nothing(self, tmp_path: Path) -> None:
        assert load_xcconfig(tmp_path / "missing.xcconfig") == {}

    def test_recursive_include_terminates(self, write_files) -> None:
        root = write_files(contents={"a.xcconfig": '#include "a.xcconfig"\nA = 1\n'})
        assert load_xcconfig(root / "a.xcconfig") == {"A": "1"}


class TestInfoPlist:
    def test_found_inside_source_directory(self, write_files) -> None:
        root = write_files("App/main.swift", "App/Support/Info.plist")
        target = _app(sources=[TargetSource("App")])

        assert find_info_plist(_project(root, target), target) == "App/Support/Info.plist"

    def test_found_as_source_file(self, write_files) -> None:
        root = write_files("Info.plist", "main.swift")
        target = _app(sources=[TargetSource("main.swift"), TargetSource("Info.plist")])

        assert find_info_plist(_project(root, target), target) == "Info.plist"

    def test_searched_once_per_target(self, write_files, monkeypatch: pytest.MonkeyPatch) -> None:
        root = write_files("App/main.swift")
        target = _app(sources=[TargetSource("App")])
        project = _project(root, target)
        calls = []

        def fake_find(project, target):
            calls.append(target.name)
            return None

        monkeypatch.setattr(settings_module, "find_info_plist", fake_find)
        synthesizer = TargetSettingsSynthesizer(project, target)
        for config in project.configs:
            settings = synthesizer.synthesize(config)
            assert "INFOPLIST_FILE" not in settings

        assert calls == ["App"]

    def test_explicit_plist_ends_search_for_later_configs(self, write_files) -> None:
        root = write_files("App/Info.plist")
        target = _app(
            sources=[TargetSource("App")],
            settings=Settings(configs={"Debug": Settings({"INFOPLIST_FILE": "Debug.plist"})}),
        )
        project = _project(root, target)
        synthesizer = TargetSettingsSynthesizer(project, target)

        debug, release = (synthesizer.synthesize(config) for config in project.configs)

        assert debug["INFOPLIST_FILE"] == "Debug.plist"
        assert "INFOPLIST_FILE" not in release


class TestSynthesize:
    def test_inferred_settings(self, write_files) -> None:
        root = write_files("App/Info.plist", "App/main.swift")
        target = _app("My_App!", sources=[TargetSource("App")])
        project = _project(root, target, options=Options(bundle_id_prefix="com.example"))

        settings = TargetSettingsSynthesizer(project, target).synthesize(project.configs[0])

        assert settings == {
            "INFOPLIST_FILE": "App/Info.plist",
            "PRODUCT_BUNDLE_IDENTIFIER": "com.example.My-App",
        }

    def test_explicit_settings_are_kept(self, write_files) -> None:
        root = write_files(
            "App/Info.plist",
            contents={"app.xcconfig": "PRODUCT_BUNDLE_IDENTIFIER = com.other.app\n"},
        )
        target = _app(
            sources=[TargetSource("App")],
            settings=Settings({"INFOPLIST_FILE": "Custom.plist"}),
            config_files={"Debug": "app.xcconfig"},
        )
        project = _project(root, target, options=Options(bundle_id_prefix="com.example"))

        debug = TargetSettingsSynthesizer(project, target).synthesize(project.configs[0])
        release = TargetSettingsSynthesizer(project, target).synthesize(project.configs[1])

        assert debug == {"INFOPLIST_FILE": "Custom.plist"}
        assert release["PRODUCT_BUNDLE_IDENTIFIER"] == "com.example.App"

    def test_ui_test_target_name(self, tmp_path: Path) -> None:
        tests = Target(
            name="AppUITests",
            type=ProductType.UI_TEST_BUNDLE,
            platform=Platform.IOS,
            dependencies=[
                Dependency(DependencyType.TARGET, "Lib"),
                Dependency(DependencyType.TARGET, "App"),
            ],
        )
        lib = Target(name="Lib", type=ProductType.FRAMEWORK, platform=Platform.IOS)
        project = _project(tmp_path, tests, lib, _app())

        settings = TargetSettingsSynthesizer(project, tests).synthesize(project.configs[0])

        assert settings["TEST_TARGET_NAME"] == "App"

    def test_objc_flag_and_search_paths_keep_setting_shape(self, tmp_path: Path) -> None:
        target = _app(settings=Settings({"OTHER_LDFLAGS": "-lz", "FRAMEWORK_SEARCH_PATHS": ["Vendor"]}))
        project = _project(tmp_path, target)

        settings = TargetSettingsSynthesizer(project, target).synthesize(
            project.configs[0],
            requires_objc_linking=True,
            framework_search_paths=["$(PROJECT_DIR)/Carthage/Build/iOS", '"Frameworks"'],
        )

        assert settings["OTHER_LDFLAGS"] == ["-lz", "-ObjC"]
        assert settings["FRAMEWORK_SEARCH_PATHS"] == ["Vendor", "$(PROJECT_DIR)/Carthage/Build/iOS", '"Frameworks"']
        assert target.settings.build_settings["FRAMEWORK_SEARCH_PATHS"] == ["Vendor"]


class TestTargetAttributes:
    def test_mirrored_when_all_configs_agree(self, tmp_path: Path) -> None:
        target = _app(
            settings=Settings({"DEVELOPMENT_TEAM": "ABC123", "CODE_SIGN_STYLE": "Manual"}),
            attributes={"SystemCapabilities": {"com.apple.Push": {"enabled": 1}}},
        )
        project = _project(tmp_path, target)

        assert infer_target_attributes(project, target) == {
            "SystemCapabilities": {"com.apple.Push": {"enabled": 1}},
            "ProvisioningStyle": "Manual",
            "DevelopmentTeam": "ABC123",
        }

    def test_omitted_when_configs_disagree(self, tmp_path: Path) -> None:
        target = _app(
            settings=Settings(
                configs={
                    "Debug": Settings({"DEVELOPMENT_TEAM": "ABC123"}),
                    "Release": Settings({"DEVELOPMENT_TEAM": "XYZ789"}),
                }
            )
        )
        project = _project(tmp_path, target)

        assert infer_target_attributes(project, target) == {}


def test_sanitize_bundle_id_component() -> None:
    assert sanitize_bundle_id_component("My_App") == "My-App"
    assert sanitize_bundle_id_component("App (Beta) 2.0") == "AppBeta2.0"
