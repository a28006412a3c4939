from typing import Optional

from xcodespec.details.spec import ProjectSpec
from xcodespec.errors import InvalidDependencyError
from xcodespec.generators.xcode.dependencies import DependencyResolver


def _flags(resolved) -> str:
    flags = [name for name in ("link", "embed", "code_sign") if getattr(resolved, name)]
    if resolved.destination is not None:
        flags.append(f"-> {resolved.destination.value}")
    return " ".join(flags)


def validate_main(project: ProjectSpec, output: Optional[str] = None):
    resolver = DependencyResolver(project)
    for target in project.targets:
        print(f"{target.name} ({target.type.name.lower()}, {target.platform.value})")
        for resolved in resolver.resolve_direct(target, resolver.dependencies_for(target)):
            print(f"  {resolved.type.value}:{resolved.reference} {_flags(resolved)}".rstrip())
        for dependency in resolver.resolve_packaged_dependencies(target):
            print(f"  packaged:{dependency.reference}")
    for aggregate in project.aggregate_targets:
        print(f"{aggregate.name} (aggregate)")
        for name in aggregate.targets:
            if project.get_project_target(name) is None:
                raise InvalidDependencyError(aggregate.name, name)
            print(f"  target:{name}")
