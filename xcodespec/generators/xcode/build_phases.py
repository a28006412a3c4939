# Build phase assembly.
#
# BuildPhaseAssembler turns one target's classified source files and the
# build files created for its dependencies into the ordered list of build
# phases Xcode runs. Phases without files are left out, except the sources
# phase which every native target has.

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from xcodespec.details.spec import (
    BuildPhaseKind,
    BuildScript,
    CopyFilesDestination,
    CopyFilesSettings,
    ProductType,
    ProjectSpec,
    Target,
)
from xcodespec.errors import BuildScriptReadError
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    PBXBuildFile,
    PBXBuildRule,
    PBXCopyFilesBuildPhase,
    PBXFrameworksBuildPhase,
    PBXHeadersBuildPhase,
    PBXResourcesBuildPhase,
    PBXShellScriptBuildPhase,
    PBXSourcesBuildPhase,
    Reference,
)
from xcodespec.generators.xcode.sources import SourceFile

SWIFT_OBJC_INTERFACE_HEADER_NAME = "SWIFT_OBJC_INTERFACE_HEADER_NAME"


def read_build_script(base_path: Path, target_name: str, script: BuildScript) -> str:
    if script.script is not None:
        return script.script
    assert script.path is not None
    path = Path(base_path) / script.path
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise BuildScriptReadError(target_name, script.name, str(path)) from e


def generate_build_script(
    project: ProjectSpec, graph: ObjectGraph, target_name: str, script: BuildScript
) -> Reference[PBXShellScriptBuildPhase]:
    shell_script = read_build_script(project.base_path, target_name, script)
    phase = PBXShellScriptBuildPhase(
        files=[],
        name=script.name or "Run Script",
        inputPaths=list(script.input_files),
        outputPaths=list(script.output_files),
        shellPath=script.shell or "/bin/sh",
        shellScript=shell_script,
        runOnlyForDeploymentPostprocessing=int(script.run_only_when_installing),
        showEnvVarsInLog=None if script.show_env_vars else 0,
    )
    return graph.create(f"{target_name}:{script.name}:{shell_script}", phase).reference


@dataclass
class DependencyBuildFiles:
    """Build files created for a target's dependencies, by destination."""

    link: List[Reference[PBXBuildFile]] = field(default_factory=list)
    app_extensions: List[Reference[PBXBuildFile]] = field(default_factory=list)
    frameworks: List[Reference[PBXBuildFile]] = field(default_factory=list)
    watch_content: List[Reference[PBXBuildFile]] = field(default_factory=list)
    resources: List[Reference[PBXBuildFile]] = field(default_factory=list)
    copy_files: Dict[CopyFilesSettings, List[Reference[PBXBuildFile]]] = field(default_factory=dict)
    # Carthage frameworks copied by `carthage copy-frameworks` instead of a copy phase
    carthage_frameworks_to_embed: List[str] = field(default_factory=list)


class BuildPhaseAssembler:
    def __init__(
        self,
        project: ProjectSpec,
        graph: ObjectGraph,
        target: Target,
        source_files: List[SourceFile],
    ):
        self.project = project
        self.graph = graph
        self.target = target
        self.source_files = source_files

    def build_files_for_source_files(self, source_files: List[SourceFile], phase: str) -> List[Reference[PBXBuildFile]]:
        unique: List[SourceFile] = []
        seen = set()
        for source_file in source_files:
            if source_file.file_reference not in seen:
                seen.add(source_file.file_reference)
                unique.append(source_file)
        unique.sort(key=lambda source_file: Path(source_file.path).name)
        return [
            self.graph.create(
                f"{self.target.name}:{phase}:{source_file.path}",
                PBXBuildFile(fileRef=source_file.file_reference, settings=source_file.settings),
            ).reference
            for source_file in unique
        ]

    def build_files_for_phase(self, phase: BuildPhaseKind) -> List[Reference[PBXBuildFile]]:
        return self.build_files_for_source_files(
            [f for f in self.source_files if f.build_phase == phase], phase.value
        )

    def build_files_for_copy_files_phases(self) -> Dict[CopyFilesSettings, List[Reference[PBXBuildFile]]]:
        by_settings: Dict[CopyFilesSettings, List[SourceFile]] = {}
        for source_file in self.source_files:
            if isinstance(source_file.build_phase, CopyFilesSettings):
                by_settings.setdefault(source_file.build_phase, []).append(source_file)
        return {
            settings: self.build_files_for_source_files(
                files, f"copy:{settings.destination.name}:{settings.subpath}"
            )
            for settings, files in by_settings.items()
        }

    def needs_swift_header_copy(self, build_settings: Mapping[str, Any]) -> bool:
        # an unset header name means Xcode's default name, only "" disables it
        if self.target.type != ProductType.STATIC_LIBRARY:
            return False
        if build_settings.get(SWIFT_OBJC_INTERFACE_HEADER_NAME) == "":
            return False
        return any(
            f.build_phase == BuildPhaseKind.SOURCES and os.path.splitext(f.path)[1] == ".swift"
            for f in self.source_files
        )

    def _copy_files_phase(
        self,
        id: str,
        files: List[Reference[PBXBuildFile]],
        destination: CopyFilesDestination,
        subpath: str = "",
        name: Optional[str] = None,
    ) -> Reference[PBXCopyFilesBuildPhase]:
        phase = PBXCopyFilesBuildPhase(
            files=files,
            dstPath=subpath,
            dstSubfolderSpec=destination.value,
            name=name,
        )
        return self.graph.create(f"{self.target.name}:{id}", phase).reference

    def _swift_header_phase(self) -> Reference[PBXShellScriptBuildPhase]:
        phase = PBXShellScriptBuildPhase(
            files=[],
            name="Copy Swift Objective-C Interface Header",
            inputPaths=["$(DERIVED_SOURCES_DIR)/$(SWIFT_OBJC_INTERFACE_HEADER_NAME)"],
            outputPaths=[
                "$(BUILT_PRODUCTS_DIR)/include/$(PRODUCT_MODULE_NAME)/$(SWIFT_OBJC_INTERFACE_HEADER_NAME)"
            ],
            shellScript='ditto "${SCRIPT_INPUT_FILE_0}" "${SCRIPT_OUTPUT_FILE_0}"\n',
        )
        return self.graph.create(f"{self.target.name}:swift-objc-header", phase).reference

    def _carthage_phase(self, frameworks: List[str]) -> Reference[PBXShellScriptBuildPhase]:
        options = self.project.options
        build_path = options.carthage_build_path or "Carthage/Build"
        platform = self.target.platform.carthage_directory_name

        def framework_name(reference: str) -> str:
            return reference if "." in reference else reference + ".framework"

        phase = PBXShellScriptBuildPhase(
            files=[],
            name="Carthage",
            inputPaths=[f"$(SRCROOT)/{build_path}/{platform}/{framework_name(r)}" for r in frameworks],
            outputPaths=[
                f"$(BUILT_PRODUCTS_DIR)/$(FRAMEWORKS_FOLDER_PATH)/{framework_name(r)}" for r in frameworks
            ],
            shellScript=f"{options.carthage_executable_path or 'carthage'} copy-frameworks\n",
        )
        return self.graph.create(f"{self.target.name}:carthage", phase).reference

    def build_phases(
        self,
        dependency_files: DependencyBuildFiles,
        build_settings: Mapping[str, Any],
    ) -> List[Reference]:
        target = self.target
        phases: List[Reference] = [
            generate_build_script(self.project, self.graph, target.name, script)
            for script in target.prebuild_scripts
        ]

        sources = self.build_files_for_phase(BuildPhaseKind.SOURCES)
        phases.append(self.graph.create(target.name, PBXSourcesBuildPhase(files=sources)).reference)

        resources = self.build_files_for_phase(BuildPhaseKind.RESOURCES) + dependency_files.resources
        if resources:
            phases.append(self.graph.create(target.name, PBXResourcesBuildPhase(files=resources)).reference)

        if self.needs_swift_header_copy(build_settings):
            phases.append(self._swift_header_phase())

        copy_files: Dict[CopyFilesSettings, List[Reference[PBXBuildFile]]] = {
            settings: list(files) for settings, files in dependency_files.copy_files.items()
        }
        for settings, files in self.build_files_for_copy_files_phases().items():
            copy_files.setdefault(settings, []).extend(files)
        for settings in sorted(copy_files, key=lambda s: (s.destination.value, s.subpath)):
            phases.append(
                self._copy_files_phase(
                    f"copy-files:{settings.destination.name}:{settings.subpath}",
                    copy_files[settings],
                    settings.destination,
                    settings.subpath,
                )
            )

        if target.type in (ProductType.FRAMEWORK, ProductType.DYNAMIC_LIBRARY):
            headers = self.build_files_for_phase(BuildPhaseKind.HEADERS)
            if headers:
                phases.append(self.graph.create(target.name, PBXHeadersBuildPhase(files=headers)).reference)

        if dependency_files.link:
            phases.append(
                self.graph.create(target.name, PBXFrameworksBuildPhase(files=list(dependency_files.link))).reference
            )

        if dependency_files.app_extensions:
            phases.append(
                self._copy_files_phase(
                    "embed-app-extensions",
                    list(dependency_files.app_extensions),
                    CopyFilesDestination.PLUGINS,
                    name="Embed App Extensions",
                )
            )

        embed_frameworks = dependency_files.frameworks + self.build_files_for_phase(BuildPhaseKind.FRAMEWORKS)
        if embed_frameworks:
            phases.append(
                self._copy_files_phase(
                    "embed-frameworks",
                    embed_frameworks,
                    CopyFilesDestination.FRAMEWORKS,
                    name="Embed Frameworks",
                )
            )

        if dependency_files.watch_content:
            phases.append(
                self._copy_files_phase(
                    "embed-watch-content",
                    list(dependency_files.watch_content),
                    CopyFilesDestination.PRODUCTS_DIRECTORY,
                    "$(CONTENTS_FOLDER_PATH)/Watch",
                    name="Embed Watch Content",
                )
            )

        if dependency_files.carthage_frameworks_to_embed:
            phases.append(self._carthage_phase(dependency_files.carthage_frameworks_to_embed))

        phases.extend(
            generate_build_script(self.project, self.graph, target.name, script)
            for script in target.postbuild_scripts
        )
        return phases

    def build_rules(self) -> List[Reference[PBXBuildRule]]:
        rules = []
        for rule in self.target.build_rules:
            build_rule = PBXBuildRule(
                compilerSpec=rule.xcode_compiler_spec,
                fileType=rule.xcode_file_type,
                isEditable=1,
                filePatterns=rule.pattern,
                name=rule.name or "Build Rule",
                outputFiles=list(rule.output_files),
                outputFilesCompilerFlags=list(rule.output_files_compiler_flags),
                script=rule.script,
            )
            key = f"{self.target.name}-{rule.xcode_compiler_spec}-{rule.pattern or rule.file_type}"
            rules.append(self.graph.create(key, build_rule).reference)
        return rules
