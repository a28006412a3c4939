import sys

from typing import Optional, TextIO

from xcodespec.details.spec import DependencyType, ProjectSpec


def write_dependency_graph(project: ProjectSpec, file: TextIO):
    print("digraph DependencyGraph {", file=file)
    print(f'  label = "{project.name}";', file=file)
    for tgt in project.targets:
        shape = "box" if tgt.is_legacy else "oval"
        print(f'  "{tgt.name}" [label="{tgt.name}\\n{tgt.type.name.lower()}", shape={shape}];', file=file)
    for agg in project.aggregate_targets:
        print(f'  "{agg.name}" [shape=diamond];', file=file)
    for tgt in project.targets:
        for dep in tgt.dependencies:
            if dep.type == DependencyType.TARGET:
                print(f'  "{tgt.name}" -> "{dep.reference}";', file=file)
            else:
                print(f'  "{dep.reference}" [shape=note];', file=file)
                print(f'  "{tgt.name}" -> "{dep.reference}" [style=dashed];', file=file)
    for agg in project.aggregate_targets:
        deps = ", ".join(f'"{name}"' for name in agg.targets)
        print(f'  "{agg.name}" -> {{{deps}}};', file=file)
    print("}", file=file)


def graph_main(project: ProjectSpec, output: Optional[str] = None):
    write_dependency_graph(project, sys.stdout)
