from pathlib import Path
from typing import List

import pytest

from xcodespec.details.spec import (
    XPC_SERVICES_COPY_FILES,
    BuildPhaseKind,
    BuildRule,
    BuildScript,
    CopyFilesDestination,
    CopyFilesSettings,
    Platform,
    ProductType,
    ProjectSpec,
    Target,
    TargetSource,
)
from xcodespec.errors import BuildScriptReadError
from xcodespec.generators.xcode.build_phases import (
    BuildPhaseAssembler,
    DependencyBuildFiles,
    generate_build_script,
)
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    PBXBuildFile,
    PBXFileReference,
    Reference,
    SourceTree,
)
from xcodespec.generators.xcode.sources import SourceGenerator


def _assembler(root: Path, target: Target) -> BuildPhaseAssembler:
    project = ProjectSpec(name="Test", base_path=root, targets=[target])
    graph = ObjectGraph()
    source_files = SourceGenerator(project, graph).get_all_source_files(target.type, target.sources)
    return BuildPhaseAssembler(project, graph, target, source_files)


def _build_file(graph: ObjectGraph, name: str) -> Reference[PBXBuildFile]:
    file_reference = graph.create(name, PBXFileReference(path=name, sourceTree=SourceTree.BUILT_PRODUCTS_DIR))
    return graph.create(name, PBXBuildFile(fileRef=file_reference.reference)).reference


def _file_names(assembler: BuildPhaseAssembler, refs: List[Reference]) -> List[str]:
    return [assembler.graph[assembler.graph[ref].fileRef].comment for ref in refs]


def test_phases_follow_fixed_order(write_files) -> None:
    root = write_files("Sources/a.swift", "Sources/data.json", "Sources/a.h")
    target = Target(
        name="Kit",
        type=ProductType.FRAMEWORK,
        platform=Platform.IOS,
        sources=[TargetSource("Sources")],
        prebuild_scripts=[BuildScript(script="echo pre", name="Pre")],
        postbuild_scripts=[BuildScript(script="echo post", name="Post")],
    )
    assembler = _assembler(root, target)
    graph = assembler.graph
    dependency_files = DependencyBuildFiles(
        link=[_build_file(graph, "Link.framework")],
        app_extensions=[_build_file(graph, "Ext.appex")],
        frameworks=[_build_file(graph, "Embed.framework")],
        watch_content=[_build_file(graph, "Watch.app")],
        copy_files={CopyFilesSettings(CopyFilesDestination.RESOURCES, "x"): [_build_file(graph, "x.txt")]},
        carthage_frameworks_to_embed=["Foo"],
    )

    phases = assembler.build_phases(dependency_files, {})

    assert [phase.comment for phase in phases] == [
        "Pre",
        "Sources",
        "Resources",
        "CopyFiles",
        "Headers",
        "Frameworks",
        "Embed App Extensions",
        "Embed Frameworks",
        "Embed Watch Content",
        "Carthage",
        "Post",
    ]


def test_empty_phases_are_left_out_except_sources(tmp_path: Path) -> None:
    target = Target(name="App", type=ProductType.APPLICATION, platform=Platform.IOS)

    phases = _assembler(tmp_path, target).build_phases(DependencyBuildFiles(), {})

    assert [phase.comment for phase in phases] == ["Sources"]


def test_headers_phase_only_for_frameworks_and_dynamic_libraries(write_files) -> None:
    root = write_files("Sources/a.h", "Sources/a.m")
    target = Target(
        name="Lib",
        type=ProductType.STATIC_LIBRARY,
        platform=Platform.IOS,
        sources=[TargetSource("Sources")],
    )

    phases = _assembler(root, target).build_phases(DependencyBuildFiles(), {})

    assert [phase.comment for phase in phases] == ["Sources"]


def test_header_visibility_becomes_build_file_attribute(write_files) -> None:
    root = write_files("Sources/Public.h", "Private/Private.h")
    target = Target(
        name="Kit",
        type=ProductType.FRAMEWORK,
        platform=Platform.IOS,
        sources=[TargetSource("Sources"), TargetSource("Private", header_visibility="private")],
    )
    assembler = _assembler(root, target)

    headers = assembler.build_files_for_phase(BuildPhaseKind.HEADERS)

    assert [assembler.graph[ref].settings for ref in headers] == [
        {"ATTRIBUTES": ["Private"]},
        {"ATTRIBUTES": ["Public"]},
    ]


class TestSwiftHeaderCopy:
    def _target(self, **kwargs) -> Target:
        return Target(
            name="Lib",
            type=ProductType.STATIC_LIBRARY,
            platform=Platform.IOS,
            sources=[TargetSource("Sources")],
            **kwargs,
        )

    def test_static_swift_library_copies_header(self, write_files) -> None:
        root = write_files("Sources/Lib.swift")

        phases = _assembler(root, self._target()).build_phases(DependencyBuildFiles(), {})

        assert [phase.comment for phase in phases] == ["Sources", "Copy Swift Objective-C Interface Header"]

    def test_empty_header_name_disables_copy(self, write_files) -> None:
        root = write_files("Sources/Lib.swift")
        assembler = _assembler(root, self._target())

        assert not assembler.needs_swift_header_copy({"SWIFT_OBJC_INTERFACE_HEADER_NAME": ""})
        assert assembler.needs_swift_header_copy({"SWIFT_OBJC_INTERFACE_HEADER_NAME": "Lib-Swift.h"})

    def test_objc_library_has_no_header_copy(self, write_files) -> None:
        root = write_files("Sources/Lib.m")

        assert not _assembler(root, self._target()).needs_swift_header_copy({})


def test_build_files_are_deduplicated_and_sorted_by_file_name(write_files) -> None:
    root = write_files("Z/a.swift", "A/b.swift")
    target = Target(
        name="App",
        type=ProductType.APPLICATION,
        platform=Platform.IOS,
        sources=[TargetSource("A"), TargetSource("Z"), TargetSource("Z/a.swift")],
    )
    assembler = _assembler(root, target)

    sources = assembler.build_files_for_phase(BuildPhaseKind.SOURCES)

    assert _file_names(assembler, sources) == ["a.swift", "b.swift"]


def test_compiler_flags_become_build_file_settings(write_files) -> None:
    root = write_files("main.m")
    target = Target(
        name="App",
        type=ProductType.APPLICATION,
        platform=Platform.IOS,
        sources=[TargetSource("main.m", compiler_flags=["-Wall", "-fno-objc-arc"])],
    )
    assembler = _assembler(root, target)

    (build_file,) = assembler.build_files_for_phase(BuildPhaseKind.SOURCES)

    assert assembler.graph[build_file].settings == {"COMPILER_FLAGS": "-Wall -fno-objc-arc"}


def test_copy_files_phases_are_merged_and_sorted(write_files) -> None:
    root = write_files("b.txt", "a.txt", "wrapper.txt", "Service.xpc")
    target = Target(
        name="App",
        type=ProductType.APPLICATION,
        platform=Platform.MACOS,
        sources=[
            TargetSource("b.txt", build_phase=CopyFilesSettings(CopyFilesDestination.RESOURCES, "b")),
            TargetSource("a.txt", build_phase=CopyFilesSettings(CopyFilesDestination.RESOURCES, "a")),
            TargetSource("wrapper.txt", build_phase=CopyFilesSettings(CopyFilesDestination.WRAPPER, "a")),
            TargetSource("Service.xpc", build_phase=XPC_SERVICES_COPY_FILES),
        ],
    )
    assembler = _assembler(root, target)
    dependency_files = DependencyBuildFiles(
        copy_files={XPC_SERVICES_COPY_FILES: [_build_file(assembler.graph, "Other.xpc")]}
    )

    phases = [assembler.graph[ref] for ref in assembler.build_phases(dependency_files, {})[1:]]

    assert [(phase.dstSubfolderSpec, phase.dstPath) for phase in phases] == [
        (1, "a"),
        (7, "a"),
        (7, "b"),
        (16, "$(CONTENTS_FOLDER_PATH)/XPCServices"),
    ]
    assert len(phases[-1].files) == 2


def test_framework_sources_are_embedded(write_files) -> None:
    root = write_files("Vendor/Bar.framework/Bar")
    target = Target(
        name="App",
        type=ProductType.APPLICATION,
        platform=Platform.IOS,
        sources=[TargetSource("Vendor/Bar.framework")],
    )
    assembler = _assembler(root, target)
    graph = assembler.graph
    dependency_files = DependencyBuildFiles(frameworks=[_build_file(graph, "Lib.framework")])

    phases = assembler.build_phases(dependency_files, {})

    embed = graph[phases[-1]]
    assert embed.name == "Embed Frameworks"
    assert embed.dstSubfolderSpec == CopyFilesDestination.FRAMEWORKS.value
    assert _file_names(assembler, embed.files) == ["Lib.framework", "Bar.framework"]


def test_carthage_phase_lists_platform_frameworks(tmp_path: Path) -> None:
    target = Target(name="App", type=ProductType.APPLICATION, platform=Platform.MACOS)
    assembler = _assembler(tmp_path, target)

    phases = assembler.build_phases(DependencyBuildFiles(carthage_frameworks_to_embed=["Foo", "Bar.xcframework"]), {})

    carthage = assembler.graph[phases[-1]]
    assert carthage.inputPaths == [
        "$(SRCROOT)/Carthage/Build/Mac/Foo.framework",
        "$(SRCROOT)/Carthage/Build/Mac/Bar.xcframework",
    ]
    assert carthage.outputPaths == [
        "$(BUILT_PRODUCTS_DIR)/$(FRAMEWORKS_FOLDER_PATH)/Foo.framework",
        "$(BUILT_PRODUCTS_DIR)/$(FRAMEWORKS_FOLDER_PATH)/Bar.xcframework",
    ]
    assert carthage.shellScript == "carthage copy-frameworks\n"


class TestBuildScripts:
    def test_script_read_from_file(self, write_files) -> None:
        root = write_files(contents={"scripts/lint.sh": "swiftlint\n"})
        project = ProjectSpec(name="Test", base_path=root)
        graph = ObjectGraph()
        script = BuildScript(path="scripts/lint.sh", run_only_when_installing=True, show_env_vars=False)

        phase = graph[generate_build_script(project, graph, "App", script)]

        assert phase.shellScript == "swiftlint\n"
        assert phase.name == "Run Script"
        assert phase.shellPath == "/bin/sh"
        assert phase.runOnlyForDeploymentPostprocessing == 1
        assert phase.showEnvVarsInLog == 0

    def test_unreadable_script_names_target_and_script(self, tmp_path: Path) -> None:
        project = ProjectSpec(name="Test", base_path=tmp_path)
        script = BuildScript(path="missing.sh", name="Lint")

        with pytest.raises(BuildScriptReadError) as excinfo:
            generate_build_script(project, ObjectGraph(), "App", script)

        assert excinfo.value.target_name == "App"
        assert excinfo.value.script_name == "Lint"

    def test_script_needs_exactly_one_source(self) -> None:
        with pytest.raises(ValueError):
            BuildScript()
        with pytest.raises(ValueError):
            BuildScript(script="echo", path="a.sh")


def test_build_rules(tmp_path: Path) -> None:
    target = Target(
        name="App",
        type=ProductType.APPLICATION,
        platform=Platform.IOS,
        build_rules=[
            BuildRule(pattern="*.y", script="yacc $INPUT_FILE_PATH", output_files=["$(DERIVED_FILE_DIR)/y.c"]),
            BuildRule(file_type="sourcecode.c", compiler_spec="com.apple.compilers.gcc", name="GCC"),
        ],
    )
    assembler = _assembler(tmp_path, target)

    script_rule, compiler_rule = (assembler.graph[ref] for ref in assembler.build_rules())

    assert script_rule.fileType == "pattern.proxy"
    assert script_rule.compilerSpec == "com.apple.compilers.proxy.script"
    assert script_rule.filePatterns == "*.y"
    assert script_rule.name == "Build Rule"
    assert script_rule.isEditable == 1
    assert compiler_rule.fileType == "sourcecode.c"
    assert compiler_rule.compilerSpec == "com.apple.compilers.gcc"
    assert compiler_rule.script is None
    assert compiler_rule.name == "GCC"
