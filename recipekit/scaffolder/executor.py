"""Recipe resolver and executor.

Walks a recipe tree depth-first, applying each operation in declaration order
against the project root.  Execution is strictly sequential: every operation
is awaited before the next one starts, and blocking file I/O is pushed to a
worker thread so the event loop stays responsive for subprocesses.

Failure is fail-fast.  The first failing operation aborts the run with a
:class:`~recipekit.errors.RecipeExecutionError` naming the recipe, the
operation index and the recipe call stack.  Whatever was written before the
failure stays on disk for inspection.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from recipekit.config import Config
from recipekit.errors import (
    CommandFailedError,
    DependencyOrderError,
    RecipeExecutionError,
)
from recipekit.params import Params
from recipekit.registry import DependencyRegistry
from recipekit.utils import format_command, print_status, run_command

from .actions import Workspace
from .operations import (
    AppendConfigBlock,
    BaseOperation,
    Chmod,
    CopyDirectory,
    CopyFile,
    CreateFile,
    InjectAfterMarker,
    InvokeRecipe,
    RegisterDependency,
    RemoveFile,
    ReplaceInFile,
    RunShellCommand,
    Say,
    UpdateYaml,
)
from .recipes import RecipeBook
from .templates import TemplateRenderer, build_context


# ---------------------------------------------------------------------------
# Execution context
# ---------------------------------------------------------------------------


@dataclass
class AppliedMutation:
    """Journal entry for one applied operation."""

    recipe: str
    index: int
    description: str


@dataclass
class ExecutionContext:
    """Mutable state shared by every recipe in one run.

    Attributes:
        workspace: Mutation primitives bound to the project root.
        params: Read-only invocation parameters.
        registry: Dependency registry shared by the whole recipe tree.
        loaded: Names of recipes already executed (or in progress).
        stack: Current recipe call stack, root first.
        journal: Applied operations in execution order.
        deferred: ``run_shell`` operations postponed until after install.
    """

    workspace: Workspace
    params: Params = field(default_factory=Params)
    registry: DependencyRegistry = field(default_factory=DependencyRegistry)
    loaded: set[str] = field(default_factory=set)
    stack: list[str] = field(default_factory=list)
    journal: list[AppliedMutation] = field(default_factory=list)
    deferred: list[RunShellCommand] = field(default_factory=list)
    shell_timeout: int = 300

    @classmethod
    def from_config(cls, config: Config, params: Params | None = None) -> "ExecutionContext":
        """Wire a workspace, renderer and template context from ``config``."""
        params = params or Params()
        search_paths = config.template_search_path
        workspace = Workspace(
            config.target_dir,
            search_paths=search_paths,
            scope_files=config.scope_files,
            renderer=TemplateRenderer(search_paths),
            context=build_context(config.project_name, params),
            quiet=config.quiet,
        )
        return cls(workspace=workspace, params=params, shell_timeout=config.shell_timeout)

    @property
    def root(self) -> Path:
        return self.workspace.root

    @property
    def quiet(self) -> bool:
        return self.workspace.quiet

    def render(self, text: str) -> str:
        return self.workspace.renderer.render_string(text, self.workspace.context)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class Executor:
    """Executes recipes from a :class:`RecipeBook` against an ExecutionContext."""

    def __init__(self, book: RecipeBook) -> None:
        self.book = book

    async def execute(self, name: str, ctx: ExecutionContext) -> None:
        """Run recipe *name* and, recursively, every recipe it invokes.

        A recipe already present in ``ctx.loaded`` is skipped, so shared
        recipes run at most once per context.

        Raises:
            RecipeNotFoundError: If *name* (the entry point) is unknown.
            RecipeExecutionError: If any operation in the tree fails.
        """
        if name in ctx.loaded:
            print_status("skip", f"recipe {name} (already applied)", quiet=ctx.quiet)
            return

        recipe = self.book.get(name)
        ctx.loaded.add(name)
        ctx.stack.append(name)
        print_status("recipe", name, quiet=ctx.quiet)

        nested_started = False
        try:
            for index, op in enumerate(recipe.steps):
                if not _condition_holds(op, ctx.params):
                    print_status("skip", op.describe(), quiet=ctx.quiet)
                    continue
                try:
                    if isinstance(op, InvokeRecipe):
                        nested_started = True
                        await self.execute(op.name, ctx)
                        continue
                    if (
                        isinstance(op, RegisterDependency)
                        and nested_started
                        and op.name not in ctx.registry
                    ):
                        raise DependencyOrderError(name, op.name)
                    await self.apply(op, ctx)
                except RecipeExecutionError:
                    raise
                except Exception as exc:
                    raise RecipeExecutionError(name, index, list(ctx.stack), exc) from exc
                ctx.journal.append(AppliedMutation(name, index, op.describe()))
        finally:
            ctx.stack.pop()

    async def apply(self, op: BaseOperation, ctx: ExecutionContext) -> Any:
        """Apply a single non-recipe operation."""
        ws = ctx.workspace

        if isinstance(op, CreateFile):
            content = ctx.render(op.content) if op.render else op.content
            return await asyncio.to_thread(
                ws.create_file, op.path, content, overwrite=op.overwrite, mode=op.mode
            )
        if isinstance(op, RemoveFile):
            return await asyncio.to_thread(ws.remove_file, op.path)
        if isinstance(op, CopyFile):
            return await asyncio.to_thread(
                ws.copy_file,
                op.source,
                op.dest,
                overwrite=op.overwrite,
                render=op.render,
                mode=op.mode,
            )
        if isinstance(op, CopyDirectory):
            return await asyncio.to_thread(
                ws.copy_directory, op.source, op.dest, overwrite=op.overwrite
            )
        if isinstance(op, InjectAfterMarker):
            text = ctx.render(op.text) if op.render else op.text
            return await asyncio.to_thread(ws.inject_after_marker, op.path, op.marker, text)
        if isinstance(op, AppendConfigBlock):
            text = ctx.render(op.text) if op.render else op.text
            return await asyncio.to_thread(ws.append_config_block, op.scope, text)
        if isinstance(op, RegisterDependency):
            dep = ctx.registry.register(op.name, op.constraint, op.group)
            print_status("package", dep.describe(), quiet=ctx.quiet)
            return dep
        if isinstance(op, RunShellCommand):
            return await self._run_shell(op, ctx)
        if isinstance(op, ReplaceInFile):
            replacement = ctx.render(op.replacement) if op.render else op.replacement
            return await asyncio.to_thread(
                ws.replace_in_file, op.path, op.pattern, replacement, required=op.required
            )
        if isinstance(op, UpdateYaml):
            return await asyncio.to_thread(ws.update_yaml, op.path, op.data)
        if isinstance(op, Chmod):
            return await asyncio.to_thread(ws.chmod, op.path, op.mode)
        if isinstance(op, Say):
            message = ctx.render(op.message) if op.render else op.message
            print_status("info", message, quiet=ctx.quiet)
            return None
        raise TypeError(f"Unsupported operation: {op!r}")

    async def _run_shell(self, op: RunShellCommand, ctx: ExecutionContext) -> None:
        display = format_command(op.command)
        if op.stage == "after_install":
            ctx.deferred.append(op)
            print_status("run", f"{display} (after install)", quiet=ctx.quiet)
            return
        print_status("run", display, quiet=ctx.quiet)
        await asyncio.to_thread(ctx.root.mkdir, parents=True, exist_ok=True)
        returncode, _stdout, stderr = await run_command(
            op.command, cwd=ctx.root, timeout=ctx.shell_timeout
        )
        if returncode != 0:
            raise CommandFailedError(display, returncode, stderr)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _condition_holds(op: BaseOperation, params: Params) -> bool:
    if op.if_param is not None and not params.is_set(op.if_param):
        return False
    if op.unless_param is not None and params.is_set(op.unless_param):
        return False
    return True
