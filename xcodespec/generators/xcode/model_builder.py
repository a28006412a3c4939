# Xcode project model builder.
#
# ProjectGenerator compiles a ProjectSpec into an ObjectGraph in a single
# pass. Every target object and product reference is created before any
# target is generated, so dependency edges can point at targets declared
# later (or at each other). The graph is frozen when the pass ends.

import logging
import os
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from xcodespec.details.settings import (
    TargetSettingsSynthesizer,
    get_build_settings,
    get_combined_build_settings,
    get_project_build_settings,
    infer_target_attributes,
)
from xcodespec.details.spec import (
    AggregateTarget,
    Dependency,
    DependencyType,
    Platform,
    ProductType,
    ProjectSpec,
    ProjectTarget,
    Target,
    XPC_SERVICES_COPY_FILES,
)
from xcodespec.errors import GeneratorReuseError, InvalidDependencyError
from xcodespec.generators.xcode.build_phases import (
    BuildPhaseAssembler,
    DependencyBuildFiles,
    generate_build_script,
)
from xcodespec.generators.xcode.dependencies import (
    DependencyResolver,
    EmbedDestination,
    ResolvedDependency,
    embed_attributes,
)
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model import (
    FileType,
    PBXAggregateTarget,
    PBXBuildFile,
    PBXContainerItemProxy,
    PBXFileReference,
    PBXGroup,
    PBXLegacyTarget,
    PBXNativeTarget,
    PBXProject,
    PBXTarget,
    PBXTargetDependency,
    ProxyType,
    Reference,
    SourceTree,
    XCBuildConfiguration,
    XCConfigurationList,
)
from xcodespec.generators.xcode.ordering import sort_derived_groups, sort_group, sort_targets
from xcodespec.generators.xcode.sources import SourceGenerator

logger = logging.getLogger(__name__)

DEFAULT_CARTHAGE_BUILD_PATH = "Carthage/Build"


class GeneratorState(Enum):
    NOT_STARTED = "not-started"
    COMPLETED = "completed"


def _optional_int(value: Optional[Union[bool, int]]) -> Optional[int]:
    return None if value is None else int(value)


class ProjectGenerator:
    def __init__(self, project: ProjectSpec):
        self.project = project
        self.graph = ObjectGraph()
        self.sources = SourceGenerator(project, self.graph)
        self.resolver = DependencyResolver(project)
        self.state = GeneratorState.NOT_STARTED

        # shared by all targets, written while each target resolves its dependencies
        self.framework_files: List[Reference[PBXFileReference]] = []
        self.carthage_frameworks_by_platform: Dict[str, List[Reference[PBXFileReference]]] = {}

        self.target_objects: Dict[str, PBXTarget] = {}
        self.aggregate_target_objects: Dict[str, PBXAggregateTarget] = {}
        self.target_file_references: Dict[str, Reference[PBXFileReference]] = {}
        self.root_project: Optional[PBXProject] = None

    @property
    def carthage_build_path(self) -> str:
        return self.project.options.carthage_build_path or DEFAULT_CARTHAGE_BUILD_PATH

    def carthage_platform_path(self, platform: Platform) -> str:
        return f"{self.carthage_build_path}/{platform.carthage_directory_name}"

    def generate(self) -> ObjectGraph:
        if self.state == GeneratorState.COMPLETED:
            raise GeneratorReuseError(f"project '{self.project.name}' has already been generated")
        self.state = GeneratorState.COMPLETED

        project = self.project
        logger.debug("generating project %s", project.name)

        for path in project.file_groups:
            self.sources.get_file_groups(path)

        build_configs = []
        for config in project.configs:
            base_configuration = None
            if config.name in project.config_files:
                base_configuration = self.sources.get_contained_file_reference(
                    project.base_path / project.config_files[config.name]
                )
            build_configs.append(
                self.graph.create(
                    config.name,
                    XCBuildConfiguration(
                        name=config.name,
                        buildSettings=get_project_build_settings(project, config),
                        baseConfigurationReference=base_configuration,
                    ),
                ).reference
            )
        default_config_name = project.options.default_config or (
            project.configs[0].name if project.configs else ""
        )
        config_list = self.graph.create(
            project.name,
            XCConfigurationList(
                buildConfigurations=build_configs,
                defaultConfigurationName=default_config_name,
            ),
        )

        options = project.options
        main_group = self.graph.create(
            "Project",
            PBXGroup(
                children=[],
                sourceTree=SourceTree.GROUP,
                usesTabs=_optional_int(options.uses_tabs),
                indentWidth=options.indent_width,
                tabWidth=options.tab_width,
            ),
        )

        self.root_project = self.graph.create(
            project.name,
            PBXProject(
                name=project.name,
                buildConfigurationList=config_list.reference,
                mainGroup=main_group.reference,
                developmentRegion=options.development_language or "en",
            ),
        )
        self.graph.root_object = self.root_project.reference

        for target in project.targets:
            self._create_target_object(target)
        for aggregate_target in project.aggregate_targets:
            self.aggregate_target_objects[aggregate_target.name] = self.graph.create(
                aggregate_target.name,
                PBXAggregateTarget(name=aggregate_target.name, productName=aggregate_target.name),
            )

        for target in project.targets:
            self.generate_target(target)
        for aggregate_target in project.aggregate_targets:
            self.generate_aggregate_target(aggregate_target)

        derived_groups = self._derived_groups()
        position = options.group_sort_position
        main_group.children = self.sources.root_groups
        sort_group(self.graph, main_group, position)
        for group in derived_groups:
            sort_group(self.graph, group, position)
        main_group.children += sort_derived_groups(self.graph, [g.reference for g in derived_groups])

        self.root_project.productRefGroup = derived_groups[0].reference
        self.root_project.knownRegions = sorted(self.sources.known_regions)
        all_targets = [t.reference for t in self.target_objects.values()]
        all_targets += [t.reference for t in self.aggregate_target_objects.values()]
        self.root_project.targets = sort_targets(self.graph, all_targets)
        self.root_project.attributes = self._project_attributes()

        self.graph.freeze()
        logger.debug("project %s compiled into %d objects", project.name, len(self.graph))
        return self.graph

    def _create_target_object(self, target: Target) -> None:
        target_object: PBXTarget
        if target.legacy is not None:
            target_object = PBXLegacyTarget(
                name=target.name,
                buildToolPath=target.legacy.tool_path,
                buildArgumentsString=target.legacy.arguments,
                passBuildSettingsInEnvironment=int(target.legacy.pass_settings),
                buildWorkingDirectory=target.legacy.working_directory,
            )
        else:
            target_object = PBXNativeTarget(name=target.name)
        self.target_objects[target.name] = self.graph.create(target.name, target_object)

        if target.is_legacy:
            return
        file_type = FileType.for_product(target.filename)
        explicit = (
            target.platform in (Platform.MACOS, Platform.WATCHOS)
            or target.type == ProductType.FRAMEWORK
        )
        product = self.graph.create(
            target.name,
            PBXFileReference(
                path=target.filename,
                sourceTree=SourceTree.BUILT_PRODUCTS_DIR,
                explicitFileType=file_type if explicit else None,
                lastKnownFileType=None if explicit else file_type,
                includeInIndex=0,
            ),
        )
        self.target_file_references[target.name] = product.reference

    def generate_target_dependency(self, from_name: str, to_name: str) -> Reference[PBXTargetDependency]:
        target_object = self.target_objects.get(to_name) or self.aggregate_target_objects.get(to_name)
        if target_object is None:
            raise InvalidDependencyError(from_name, to_name)
        assert self.graph.root_object is not None
        proxy = self.graph.create(
            f"{from_name}-{to_name}",
            PBXContainerItemProxy(
                containerPortal=self.graph.root_object,
                remoteGlobalIDString=target_object.id,
                remoteInfo=to_name,
                proxyType=ProxyType.TARGET_DEPENDENCY,
            ),
        )
        return self.graph.create(
            f"{from_name}-{to_name}",
            PBXTargetDependency(target=target_object.reference, targetProxy=proxy.reference),
        ).reference

    def _build_file(self, id: str, file_reference: Reference, settings: Optional[Dict[str, Any]] = None) -> Reference[PBXBuildFile]:
        return self.graph.create(id, PBXBuildFile(fileRef=file_reference, settings=settings)).reference

    def _carthage_file_reference(self, target: Target, dependency: Dependency) -> Reference[PBXFileReference]:
        path = f"{self.carthage_platform_path(target.platform)}/{dependency.reference}"
        if not os.path.splitext(path)[1]:
            path += ".framework"
        return self.sources.get_file_reference(self.project.base_path / path)

    def _add_embed(self, files: DependencyBuildFiles, destination: EmbedDestination, build_file: Reference[PBXBuildFile]) -> None:
        if destination == EmbedDestination.APP_EXTENSIONS:
            files.app_extensions.append(build_file)
        elif destination == EmbedDestination.FRAMEWORKS:
            files.frameworks.append(build_file)
        elif destination == EmbedDestination.WATCH_CONTENT:
            files.watch_content.append(build_file)
        elif destination == EmbedDestination.XPC_SERVICES:
            files.copy_files.setdefault(XPC_SERVICES_COPY_FILES, []).append(build_file)
        else:
            files.resources.append(build_file)

    def _link_target_dependency(
        self, target: Target, resolved: ResolvedDependency, files: DependencyBuildFiles
    ) -> None:
        product = self.target_file_references.get(resolved.reference)
        if product is None:
            # aggregate and legacy targets have no product to link or embed
            return
        if resolved.link:
            files.link.append(self._build_file(f"{target.name}:link:{resolved.reference}", product))
        if resolved.embed:
            assert resolved.destination is not None
            embed_file = self._build_file(
                f"{target.name}:embed:{resolved.reference}", product, resolved.embed_attributes
            )
            self._add_embed(files, resolved.destination, embed_file)

    def _link_framework_dependency(
        self,
        target: Target,
        resolved: ResolvedDependency,
        files: DependencyBuildFiles,
        framework_build_paths: Set[str],
    ) -> None:
        dependency = resolved.dependency
        if dependency.implicit:
            file_reference = self.sources.get_file_reference(dependency.reference, SourceTree.BUILT_PRODUCTS_DIR)
        else:
            file_reference = self.sources.get_file_reference(self.project.base_path / dependency.reference)
        if resolved.link:
            files.link.append(self._build_file(f"{target.name}:link:{dependency.reference}", file_reference))
        if file_reference not in self.framework_files:
            self.framework_files.append(file_reference)
        if resolved.embed:
            files.frameworks.append(
                self._build_file(
                    f"{target.name}:embed:{dependency.reference}", file_reference, resolved.embed_attributes
                )
            )
        parent = os.path.dirname(dependency.reference) or "."
        framework_build_paths.add(f'"{parent}"')

    def _link_carthage_dependency(
        self, target: Target, resolved: ResolvedDependency, files: DependencyBuildFiles
    ) -> None:
        file_reference = self._carthage_file_reference(target, resolved.dependency)
        if resolved.link:
            files.link.append(
                self._build_file(f"{target.name}:link:carthage:{resolved.reference}", file_reference)
            )
        platform_files = self.carthage_frameworks_by_platform.setdefault(
            target.platform.carthage_directory_name, []
        )
        if file_reference not in platform_files:
            platform_files.append(file_reference)

    def _embed_carthage_dependencies(
        self, target: Target, packaged: List[Dependency], files: DependencyBuildFiles
    ) -> None:
        directly_embed = target.directly_embed_carthage_dependencies
        if directly_embed is None:
            directly_embed = not (target.platform.requires_simulator_stripping and target.type.is_app)
        for dependency in packaged:
            embed = dependency.embed
            if embed is None:
                embed = target.should_embed_dependencies
            if not embed:
                continue
            if not directly_embed:
                files.carthage_frameworks_to_embed.append(dependency.reference)
                continue
            code_sign = dependency.code_sign if dependency.code_sign is not None else True
            files.frameworks.append(
                self._build_file(
                    f"{target.name}:embed:carthage:{dependency.reference}",
                    self._carthage_file_reference(target, dependency),
                    embed_attributes(dependency, code_sign),
                )
            )

    def generate_target(self, target: Target) -> None:
        logger.debug("generating target %s", target.name)
        project = self.project
        packaged = self.resolver.resolve_packaged_dependencies(target)
        source_files = self.sources.get_all_source_files(target.type, target.sources)

        files = DependencyBuildFiles()
        dependency_edges: List[Reference[PBXTargetDependency]] = []
        framework_build_paths: Set[str] = set()
        requires_objc_linking = False

        for resolved in self.resolver.resolve_direct(target, self.resolver.dependencies_for(target)):
            if resolved.type == DependencyType.TARGET:
                dependency_edges.append(self.generate_target_dependency(target.name, resolved.reference))
                self._link_target_dependency(target, resolved, files)
                requires_objc_linking = requires_objc_linking or resolved.requires_objc_linking
            elif resolved.type == DependencyType.FRAMEWORK:
                self._link_framework_dependency(target, resolved, files, framework_build_paths)
            else:
                self._link_carthage_dependency(target, resolved, files)

        if target.type != ProductType.STATIC_LIBRARY:
            self._embed_carthage_dependencies(target, packaged, files)

        assembler = BuildPhaseAssembler(project, self.graph, target, source_files)
        first_config_settings: Dict[str, Any] = {}
        if project.configs:
            first_config_settings = get_combined_build_settings(project, target, project.configs[0])
        build_phases = assembler.build_phases(files, first_config_settings)
        build_rules = assembler.build_rules()

        search_paths = sorted(framework_build_paths)
        if packaged:
            search_paths.insert(0, "$(PROJECT_DIR)/" + self.carthage_platform_path(target.platform))

        synthesizer = TargetSettingsSynthesizer(project, target)
        configs = []
        for config in project.configs:
            build_settings = synthesizer.synthesize(
                config,
                requires_objc_linking=requires_objc_linking,
                framework_search_paths=search_paths,
            )
            configs.append(
                self.graph.create(
                    config.name + target.name,
                    XCBuildConfiguration(
                        name=config.name,
                        buildSettings=build_settings,
                        baseConfigurationReference=self._config_file_reference(target, config.name),
                    ),
                ).reference
            )
        config_list = self.graph.create(target.name, XCConfigurationList(buildConfigurations=configs))

        target_object = self.target_objects[target.name]
        target_object.buildConfigurationList = config_list.reference
        target_object.buildPhases = build_phases
        target_object.buildRules = build_rules
        target_object.dependencies = dependency_edges
        target_object.productName = target.name
        if isinstance(target_object, PBXNativeTarget):
            target_object.productReference = self.target_file_references[target.name]
            target_object.productType = target.type.value

    def generate_aggregate_target(self, target: AggregateTarget) -> None:
        logger.debug("generating aggregate target %s", target.name)
        configs = [
            self.graph.create(
                config.name + target.name,
                XCBuildConfiguration(
                    name=config.name,
                    buildSettings=get_build_settings(self.project, target.settings, config),
                    baseConfigurationReference=self._config_file_reference(target, config.name),
                ),
            ).reference
            for config in self.project.configs
        ]
        dependencies = [self.generate_target_dependency(target.name, name) for name in target.targets]
        config_list = self.graph.create(target.name, XCConfigurationList(buildConfigurations=configs))

        aggregate_target = self.aggregate_target_objects[target.name]
        aggregate_target.buildPhases = [
            generate_build_script(self.project, self.graph, target.name, script)
            for script in target.build_scripts
        ]
        aggregate_target.buildConfigurationList = config_list.reference
        aggregate_target.dependencies = dependencies

    def _config_file_reference(self, target: ProjectTarget, config_name: str) -> Optional[Reference[PBXFileReference]]:
        if config_name not in target.config_files:
            return None
        return self.sources.get_contained_file_reference(
            self.project.base_path / target.config_files[config_name]
        )

    def _derived_groups(self) -> List[PBXGroup]:
        # Products is always first
        groups = [
            self.graph.create(
                "Products",
                PBXGroup(
                    children=list(self.target_file_references.values()),
                    sourceTree=SourceTree.GROUP,
                    name="Products",
                ),
            )
        ]

        if self.carthage_frameworks_by_platform:
            platform_groups = [
                self.graph.create(
                    "Carthage" + platform,
                    PBXGroup(children=list(file_references), sourceTree=SourceTree.GROUP, path=platform),
                ).reference
                for platform, file_references in sorted(self.carthage_frameworks_by_platform.items())
            ]
            carthage_group = self.graph.create(
                "Carthage",
                PBXGroup(
                    children=platform_groups,
                    sourceTree=SourceTree.GROUP,
                    name="Carthage",
                    path=self.carthage_build_path,
                ),
            )
            self.framework_files.append(carthage_group.reference)

        if self.framework_files:
            groups.append(
                self.graph.create(
                    "Frameworks",
                    PBXGroup(children=list(self.framework_files), sourceTree=SourceTree.GROUP, name="Frameworks"),
                )
            )
        return groups

    def _test_target_name(self, target_object: PBXNativeTarget) -> Optional[str]:
        if target_object.buildConfigurationList is None:
            return None
        config_list = self.graph[target_object.buildConfigurationList]
        assert isinstance(config_list, XCConfigurationList)
        for ref in config_list.buildConfigurations:
            config = self.graph[ref]
            assert isinstance(config, XCBuildConfiguration)
            value = config.buildSettings.get("TEST_TARGET_NAME")
            if isinstance(value, str):
                return value
        return None

    def _target_attributes(self) -> Dict[str, Dict[str, Any]]:
        target_attributes: Dict[str, Dict[str, Any]] = {}

        for target_object in self.target_objects.values():
            if not isinstance(target_object, PBXNativeTarget):
                continue
            if target_object.productType != ProductType.UI_TEST_BUNDLE.value:
                continue
            name = self._test_target_name(target_object)
            if name is None:
                continue
            tested = self.target_objects.get(name) or self.aggregate_target_objects.get(name)
            if tested is not None:
                target_attributes.setdefault(target_object.id, {})["TestTargetID"] = tested.reference

        project_targets: List[ProjectTarget] = [*self.project.aggregate_targets, *self.project.targets]
        for project_target in project_targets:
            target_object = self.target_objects.get(project_target.name) or self.aggregate_target_objects.get(
                project_target.name
            )
            if target_object is None:
                continue
            attributes = infer_target_attributes(self.project, project_target)
            if attributes:
                target_attributes.setdefault(target_object.id, {}).update(attributes)
        return target_attributes

    def _project_attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {"LastUpgradeCheck": self.project.xcode_version_string}
        attributes.update(self.project.attributes)
        target_attributes = self._target_attributes()
        if target_attributes:
            attributes["TargetAttributes"] = target_attributes
        return attributes


def generate_project_graph(project: ProjectSpec) -> ObjectGraph:
    return ProjectGenerator(project).generate()
