"""Exception hierarchy for recipekit.

Every failure raised by the engine derives from :class:`ScaffoldError` so the
CLI can report it uniformly.  All of them are fatal to the current run: the
target directory is left as-is for inspection.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class AlreadyExistsError(ScaffoldError):
    """Raised when creating a file that exists and overwriting is disabled."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"File already exists: {self.path}")


class SourceNotFoundError(ScaffoldError):
    """Raised when a copy source cannot be resolved on any search path."""

    def __init__(self, source: str, search_paths: list[Path] | None = None) -> None:
        self.source = source
        self.search_paths = list(search_paths or [])
        searched = ", ".join(str(p) for p in self.search_paths) or "<none>"
        super().__init__(f"Source not found: {source} (searched: {searched})")


class MarkerNotFoundError(ScaffoldError):
    """Raised when an injection marker or replace pattern is absent from a file."""

    def __init__(self, path: str | Path, marker: str) -> None:
        self.path = str(path)
        self.marker = marker
        super().__init__(f"Marker {marker!r} not found in {self.path}")


class DuplicateDependencyError(ScaffoldError):
    """Raised when a dependency is re-registered with a conflicting declaration."""

    def __init__(self, name: str, existing: str, requested: str) -> None:
        self.name = name
        super().__init__(
            f"Dependency {name!r} already registered as {existing}, "
            f"cannot register as {requested}"
        )


class RegistryClosedError(ScaffoldError):
    """Raised when registering a dependency after the registry was finalized."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Cannot register {name!r}: dependency registry is already finalized"
        )


class DependencyOrderError(ScaffoldError):
    """Raised when a recipe registers a dependency after starting nested recipes."""

    def __init__(self, recipe: str, name: str) -> None:
        self.recipe = recipe
        self.name = name
        super().__init__(
            f"Recipe {recipe!r} registers {name!r} after invoking nested recipes; "
            f"declare dependencies before any nested recipe"
        )


class RecipeNotFoundError(ScaffoldError):
    """Raised when a recipe name is not present in the recipe book."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Recipe not found: {name}")


class RecipeLoadError(ScaffoldError):
    """Raised when a recipe definition cannot be parsed or validated."""


class CommandFailedError(ScaffoldError):
    """Raised when a shell command run by a recipe exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr}" if stderr else ""
        super().__init__(f"Command failed with exit code {returncode}: {command}{detail}")


class InstallFailedError(ScaffoldError):
    """Raised when the package installer exits non-zero."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = f"\n{stderr}" if stderr else ""
        super().__init__(f"Install failed (exit {returncode}): {command}{detail}")


class RecipeExecutionError(ScaffoldError):
    """Wraps a failure with the recipe, operation index and call stack it came from.

    Attributes:
        recipe: Name of the recipe whose operation failed.
        index: Zero-based index of the failing operation within that recipe.
        stack: Recipe call stack at the time of failure, root first.
        cause: The original error.
    """

    def __init__(
        self,
        recipe: str,
        index: int,
        stack: list[str],
        cause: BaseException,
    ) -> None:
        self.recipe = recipe
        self.index = index
        self.stack = list(stack)
        self.cause = cause
        chain = " > ".join(self.stack)
        super().__init__(
            f"Recipe {recipe!r} failed at operation {index} ({chain}): {cause}"
        )
