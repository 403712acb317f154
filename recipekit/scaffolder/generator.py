"""Main scaffolding orchestrator.

Takes a :class:`~recipekit.config.Config` plus invocation parameters, runs the
root recipe tree against the target directory and then hands the collected
dependencies to the install driver.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from recipekit.config import Config
from recipekit.params import Params
from recipekit.registry import Dependency

from .executor import AppliedMutation, ExecutionContext, Executor
from .installer import InstallDriver, InstallResult
from .recipes import RecipeBook


@dataclass
class GenerationResult:
    """Outcome of a successful scaffolding run."""

    recipes: list[str] = field(default_factory=list)
    journal: list[AppliedMutation] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    install: InstallResult | None = None
    elapsed: float = 0.0


class ProjectGenerator:
    """Scaffolds a project by running a root recipe and installing dependencies.

    The recipe book is built from ``config.recipe_search_path`` unless one is
    passed in explicitly.
    """

    def __init__(
        self,
        config: Config,
        params: Params | None = None,
        book: RecipeBook | None = None,
    ) -> None:
        self.config = config
        self.params = params or Params()
        self.book = book if book is not None else RecipeBook.from_paths(config.recipe_search_path)
        self.executor = Executor(self.book)
        self.installer = InstallDriver(config.install, quiet=config.quiet)

    async def generate(self, root_recipe: str) -> GenerationResult:
        """Run *root_recipe* and the install step.

        Two phases, strictly ordered: the full recipe tree first (every
        dependency registration happens here), then the install driver, which
        finalizes the registry before invoking the installer.

        Returns:
            A :class:`GenerationResult` describing what was applied.
        """
        started = time.monotonic()
        await asyncio.to_thread(self.config.target_dir.mkdir, parents=True, exist_ok=True)

        ctx = ExecutionContext.from_config(self.config, self.params)
        await self.executor.execute(root_recipe, ctx)

        install = await self.installer.run(
            ctx.root, ctx.registry, ctx.deferred, shell_timeout=self.config.shell_timeout
        )
        return GenerationResult(
            recipes=sorted(ctx.loaded),
            journal=list(ctx.journal),
            dependencies=install.dependencies,
            install=install,
            elapsed=time.monotonic() - started,
        )
