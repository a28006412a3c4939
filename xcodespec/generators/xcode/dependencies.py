# Dependency resolution.
#
# The decision table at the top of this module answers, for one dependency
# of one target, whether it is linked, embedded and code signed on copy and
# which copy-files bucket an embedded product goes to. DependencyResolver
# applies it to a target's declared or transitive dependencies.

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Set

from xcodespec.details.spec import (
    AggregateTarget,
    Dependency,
    DependencyType,
    Linkage,
    Platform,
    ProductType,
    ProjectSpec,
    ProjectTarget,
    Target,
)
from xcodespec.errors import InvalidDependencyError

logger = logging.getLogger(__name__)


class EmbedDestination(Enum):
    APP_EXTENSIONS = "app-extensions"
    FRAMEWORKS = "frameworks"
    WATCH_CONTENT = "watch-content"
    XPC_SERVICES = "xpc-services"
    RESOURCES = "resources"


def should_link(dependency_target: Target, target: Target) -> bool:
    linkage = dependency_target.default_linkage
    return (linkage == Linkage.DYNAMIC and target.type != ProductType.STATIC_LIBRARY) or (
        linkage == Linkage.STATIC and target.type.is_executable
    )


def should_embed(dependency_target: Target, target: Target) -> bool:
    if dependency_target.type.is_library:
        return False
    return target.type.is_app or (
        target.type.is_test
        and (dependency_target.type.is_framework or dependency_target.type == ProductType.BUNDLE)
    )


def should_code_sign(dependency_target: Target) -> bool:
    return not dependency_target.type.is_executable


def embed_destination(dependency_target: Target) -> EmbedDestination:
    # decided by the dependency's product, never by the dependent's
    product_type = dependency_target.type
    if product_type.is_extension:
        return EmbedDestination.APP_EXTENSIONS
    if product_type.is_framework:
        return EmbedDestination.FRAMEWORKS
    if product_type.is_app and dependency_target.platform == Platform.WATCHOS:
        return EmbedDestination.WATCH_CONTENT
    if product_type == ProductType.XPC_SERVICE:
        return EmbedDestination.XPC_SERVICES
    return EmbedDestination.RESOURCES


def requires_objc_linking(dependency_target: Target) -> bool:
    if dependency_target.requires_objc_linking is not None:
        return dependency_target.requires_objc_linking
    return dependency_target.type == ProductType.STATIC_LIBRARY


def embed_attributes(dependency: Dependency, code_sign: bool) -> Dict[str, List[str]]:
    """Build file settings of an embedded product."""
    attributes = []
    if code_sign:
        attributes.append("CodeSignOnCopy")
    if dependency.remove_headers:
        attributes.append("RemoveHeadersOnCopy")
    return {"ATTRIBUTES": attributes}


@dataclass(frozen=True)
class ResolvedDependency:
    dependency: Dependency
    link: bool
    embed: bool
    code_sign: bool
    destination: Optional[EmbedDestination] = None
    # the native dependency target, None for frameworks and aggregate targets
    target: Optional[Target] = None
    requires_objc_linking: bool = False

    @property
    def reference(self) -> str:
        return self.dependency.reference

    @property
    def type(self) -> DependencyType:
        return self.dependency.type

    @property
    def embed_attributes(self) -> Dict[str, List[str]]:
        return embed_attributes(self.dependency, self.code_sign)


class DependencyResolver:
    def __init__(self, project: ProjectSpec):
        self.project = project

    def dependencies_for(self, target: Target) -> List[Dependency]:
        transitive = target.transitively_link_dependencies
        if transitive is None:
            transitive = self.project.options.transitively_link_dependencies
        if transitive:
            return self.resolve_transitive_embeddable(target)
        return list(target.dependencies)

    def resolve_direct(
        self, target: Target, dependencies: Optional[List[Dependency]] = None
    ) -> List[ResolvedDependency]:
        if dependencies is None:
            dependencies = target.dependencies
        resolved: List[ResolvedDependency] = []
        for dependency in dependencies:
            if dependency.type == DependencyType.TARGET:
                resolved.append(self._resolve_target_dependency(target, dependency))
            elif target.type != ProductType.STATIC_LIBRARY:
                # static libraries neither link nor embed prebuilt frameworks
                resolved.append(self._resolve_framework_dependency(target, dependency))
        return resolved

    def _resolve_target_dependency(self, target: Target, dependency: Dependency) -> ResolvedDependency:
        dependency_target = self.project.get_target(dependency.reference)
        if dependency_target is None:
            if self.project.get_aggregate_target(dependency.reference) is None:
                raise InvalidDependencyError(target.name, dependency.reference)
            return ResolvedDependency(dependency=dependency, link=False, embed=False, code_sign=False)
        if dependency_target.is_legacy:
            # legacy targets build through an external tool and have no product
            return ResolvedDependency(dependency=dependency, link=False, embed=False, code_sign=False)

        link = dependency.link
        if link is None:
            link = should_link(dependency_target, target)
        embed = dependency.embed
        if embed is None:
            embed = should_embed(dependency_target, target)
        code_sign = dependency.code_sign
        if code_sign is None:
            code_sign = should_code_sign(dependency_target)
        return ResolvedDependency(
            dependency=dependency,
            link=link,
            embed=embed,
            code_sign=code_sign,
            destination=embed_destination(dependency_target) if embed else None,
            target=dependency_target,
            requires_objc_linking=link and requires_objc_linking(dependency_target),
        )

    def _resolve_framework_dependency(self, target: Target, dependency: Dependency) -> ResolvedDependency:
        embed = dependency.embed
        if embed is None:
            embed = target.should_embed_dependencies
        return ResolvedDependency(
            dependency=dependency,
            link=dependency.link if dependency.link is not None else True,
            embed=embed,
            code_sign=dependency.code_sign if dependency.code_sign is not None else True,
            # carthage embedding is decided by the packaged dependency path
            destination=(
                EmbedDestination.FRAMEWORKS
                if embed and dependency.type == DependencyType.FRAMEWORK
                else None
            ),
        )

    def resolve_transitive_embeddable(self, target: Target) -> List[Dependency]:
        """Declared dependencies plus the transitive ones that need embedding.

        Breadth first from the target; each target is visited once, so cycles
        terminate. The first dependency seen for a reference wins, which makes
        the target's own declarations override transitive ones. Targets that
        embed their own dependencies (apps and tests) are not traversed.
        """
        visited: Set[str] = set()
        dependencies: Dict[str, Dependency] = {}
        queue: Deque[Target] = deque([target])
        while queue:
            current = queue.popleft()
            if current.name in visited:
                continue
            is_top_level = current.name == target.name
            for dependency in current.dependencies:
                # a cycle back to the start is not a dependency of itself
                if dependency.reference in dependencies or dependency.reference == target.name:
                    continue
                # an explicit embed below the top level was decided by that target
                if not is_top_level and dependency.embed is not None:
                    continue
                if dependency.type != DependencyType.TARGET:
                    dependencies[dependency.reference] = dependency
                    continue
                dependency_target = self.project.get_target(dependency.reference)
                if dependency_target is not None:
                    dependencies[dependency.reference] = dependency
                    if not dependency_target.should_embed_dependencies:
                        queue.append(dependency_target)
                elif self.project.get_aggregate_target(dependency.reference) is not None:
                    dependencies[dependency.reference] = dependency
                else:
                    raise InvalidDependencyError(current.name, dependency.reference)
            visited.add(current.name)
        logger.debug("%s: %d transitive dependencies", target.name, len(dependencies))
        return [dependencies[reference] for reference in sorted(dependencies)]

    def resolve_packaged_dependencies(self, target: ProjectTarget) -> List[Dependency]:
        """Carthage dependencies reachable from a target, through target
        dependencies and aggregate targets alike, first seen wins."""
        visited: Set[str] = set()
        frameworks: Dict[str, Dependency] = {}
        queue: Deque[ProjectTarget] = deque([target])
        while queue:
            current = queue.popleft()
            if current.name in visited:
                continue
            if isinstance(current, AggregateTarget):
                for name in current.targets:
                    project_target = self.project.get_project_target(name)
                    if project_target is not None:
                        queue.append(project_target)
            else:
                for dependency in current.dependencies:
                    if dependency.reference in frameworks:
                        continue
                    if dependency.type == DependencyType.CARTHAGE:
                        frameworks[dependency.reference] = dependency
                    elif dependency.type == DependencyType.TARGET:
                        project_target = self.project.get_project_target(dependency.reference)
                        if project_target is not None:
                            queue.append(project_target)
            visited.add(current.name)
        return [frameworks[reference] for reference in sorted(frameworks)]
