from typing import Optional


class ProjectGenerationError(Exception):
    """Base class for failures that abort generation but not the process."""


class ProjectLoadError(ProjectGenerationError):
    pass


class InvalidDependencyError(ProjectGenerationError, ValueError):
    def __init__(self, target_name: str, reference: str):
        super().__init__(
            f"target '{target_name}' depends on unknown target '{reference}'"
        )
        self.target_name = target_name
        self.reference = reference


class BuildScriptReadError(ProjectGenerationError):
    def __init__(self, target_name: str, script_name: Optional[str], path: str):
        super().__init__(
            f"failed to read build script '{script_name or 'Run Script'}' "
            f"of target '{target_name}' from {path}"
        )
        self.target_name = target_name
        self.script_name = script_name
        self.path = path


# A ProjectGenerator instance generates exactly once, a second call is a bug
class GeneratorReuseError(RuntimeError):
    pass
