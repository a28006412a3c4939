import logging
from importlib.machinery import SourceFileLoader
from importlib.util import module_from_spec, spec_from_loader
from pathlib import Path

from xcodespec.details.context import ProjectContext
from xcodespec.details.spec import ProjectSpec
from xcodespec.errors import ProjectLoadError

logger = logging.getLogger(__name__)


def load_user_module(ctx: ProjectContext):
    module_name = ".".join(["xcodespec", "project", ctx.MODULENAME])
    module_path = ctx.root.joinpath(ctx.FILENAME)
    if not module_path.is_file():
        raise ProjectLoadError(f"no {ctx.FILENAME} found in {ctx.root}")
    spec = spec_from_loader(
        module_name, SourceFileLoader(module_name, str(module_path))
    )
    if not spec or not spec.loader:
        raise ProjectLoadError(f"failed to load module spec {module_path}")
    project_module = module_from_spec(spec)
    setattr(project_module, "CTX", ctx)
    try:
        spec.loader.exec_module(project_module)
    except (SyntaxError, TypeError, ValueError, KeyError, RuntimeError) as e:
        raise ProjectLoadError(f"failed to load {module_path}: {e}") from e


def load_project(project_root: Path = Path(".")) -> ProjectSpec:
    ctx = ProjectContext(Path(project_root))
    load_user_module(ctx)
    project = ctx.to_project()
    logger.debug(
        "loaded project %s: %d targets, %d aggregate targets",
        project.name,
        len(project.targets),
        len(project.aggregate_targets),
    )
    return project
