"""recipekit scaffolder -- runs recipe trees against a project directory.

Quick usage::

    from recipekit.config import Config
    from recipekit.params import Params
    from recipekit.scaffolder import ProjectGenerator

    config = Config(target_dir=Path("/tmp/my-api"))
    generator = ProjectGenerator(config, Params.parse(["--skip-docker"]))
    result = await generator.generate("api")
"""

from recipekit.scaffolder.actions import Workspace
from recipekit.scaffolder.executor import ExecutionContext, Executor
from recipekit.scaffolder.generator import GenerationResult, ProjectGenerator
from recipekit.scaffolder.installer import InstallDriver, InstallResult
from recipekit.scaffolder.recipes import Recipe, RecipeBook
from recipekit.scaffolder.templates import TemplateRenderer

__all__ = [
    "ExecutionContext",
    "Executor",
    "GenerationResult",
    "InstallDriver",
    "InstallResult",
    "ProjectGenerator",
    "Recipe",
    "RecipeBook",
    "TemplateRenderer",
    "Workspace",
]
