from typing import Optional

from xcodespec.details.spec import ProjectSpec
from xcodespec.generators.xcode import XcodeGenerator


def generate_main(project: ProjectSpec, output: Optional[str] = None):
    generator = XcodeGenerator(project, output)
    generator()
