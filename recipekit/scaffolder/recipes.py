"""Recipe definitions and the recipe book.

A recipe is a named, ordered list of operations.  Recipes are stored as YAML
files; the recipe name is the file's path relative to its recipe root without
the extension, so ``config/log.yaml`` defines the recipe ``config/log``.

The :class:`RecipeBook` is built once at startup by scanning every recipe
root.  Lookups of unknown names fail with
:class:`~recipekit.errors.RecipeNotFoundError` rather than with a filesystem
error.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recipekit.errors import RecipeLoadError, RecipeNotFoundError

from .operations import InvokeRecipe, Operation

RECIPE_SUFFIXES = (".yaml", ".yml")


class Recipe(BaseModel):
    """A named unit of scaffolding work."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    steps: tuple[Operation, ...] = ()
    source: Path | None = Field(default=None, description="File the recipe was loaded from")

    @property
    def nested(self) -> list[str]:
        """Names of recipes this recipe invokes, in order."""
        return [s.name for s in self.steps if isinstance(s, InvokeRecipe)]


def load_recipe(path: Path, name: str) -> Recipe:
    """Parse and validate a single recipe file.

    Raises:
        RecipeLoadError: If the file is not valid YAML or does not describe a
            valid recipe.
    """
    try:
        raw: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise RecipeLoadError(f"Invalid YAML in recipe {name!r} ({path}): {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise RecipeLoadError(f"Recipe {name!r} ({path}) must be a mapping with 'steps'")

    try:
        return Recipe(
            name=name,
            description=raw.get("description", ""),
            steps=tuple(raw.get("steps") or ()),
            source=path,
        )
    except ValidationError as exc:
        raise RecipeLoadError(f"Invalid recipe {name!r} ({path}):\n{exc}") from exc


class RecipeBook:
    """Explicit name -> :class:`Recipe` registry."""

    def __init__(self, recipes: Iterable[Recipe] = ()) -> None:
        self._recipes: dict[str, Recipe] = {}
        for recipe in recipes:
            self.add(recipe)

    @classmethod
    def from_paths(cls, roots: Iterable[Path]) -> "RecipeBook":
        """Scan recipe roots in priority order.

        When two roots define the same name the earlier root wins, so project
        recipes shadow the bundled library.  Missing roots are ignored.
        """
        book = cls()
        for root in roots:
            root = Path(root)
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if path.suffix not in RECIPE_SUFFIXES or not path.is_file():
                    continue
                name = path.relative_to(root).with_suffix("").as_posix()
                if name in book:
                    continue
                book.add(load_recipe(path, name))
        return book

    def add(self, recipe: Recipe, *, replace: bool = False) -> None:
        if recipe.name in self._recipes and not replace:
            raise RecipeLoadError(f"Recipe {recipe.name!r} is already defined")
        self._recipes[recipe.name] = recipe

    def get(self, name: str) -> Recipe:
        try:
            return self._recipes[name]
        except KeyError:
            raise RecipeNotFoundError(name) from None

    def names(self) -> list[str]:
        return sorted(self._recipes)

    def missing_references(self) -> dict[str, list[str]]:
        """Map each recipe to the nested recipe names it references but the book lacks."""
        missing: dict[str, list[str]] = {}
        for recipe in self._recipes.values():
            unknown = [n for n in recipe.nested if n not in self._recipes]
            if unknown:
                missing[recipe.name] = unknown
        return missing

    def __contains__(self, name: object) -> bool:
        return name in self._recipes

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self._recipes.values())

    def __len__(self) -> int:
        return len(self._recipes)
