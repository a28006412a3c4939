import logging
from pathlib import Path
from typing import Union

from xcodespec.details.spec import ProjectSpec
from xcodespec.errors import ProjectGenerationError
from xcodespec.generators.xcode.formatter import format_project_graph
from xcodespec.generators.xcode.graph import ObjectGraph
from xcodespec.generators.xcode.model_builder import ProjectGenerator
from xcodespec.generators.xcode.validator import (
    validate_output_paths,
    validate_references,
)

logger = logging.getLogger(__name__)


def _generate(project: ProjectSpec, output: Path) -> ObjectGraph:

    # Validate output ends with .xcodeproj
    if output.suffix != ".xcodeproj":
        raise ValueError(
            f"Xcode generator requires the output to end with '.xcodeproj'. "
            f"Got '{output}' instead. Please specify a path ending with '.xcodeproj'."
        )

    # Compile the project graph, nothing is written if this fails
    graph = ProjectGenerator(project).generate()

    if errors := validate_references(graph):
        raise ProjectGenerationError(f"Invalid project: {errors}")

    validate_output_paths(graph)

    # Format and write to disk
    project_str = format_project_graph(graph)
    output.mkdir(parents=True, exist_ok=True)
    project_file = output / "project.pbxproj"
    with open(project_file, "w", encoding="utf-8") as f:
        f.write(project_str)
    logger.info("wrote %s", project_file)
    return graph


class XcodeGenerator:
    def __init__(self, project: ProjectSpec, output: Union[str, Path, None] = None):
        self.project = project
        if output is None:
            output = project.base_path / f"{project.name}.xcodeproj"
        self.output = Path(output)

    def __call__(self) -> ObjectGraph:
        """Generate the Xcode project."""
        return _generate(self.project, self.output)
