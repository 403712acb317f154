"""recipekit configuration.

Centralised, typed configuration for a scaffolding run.  All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Bundled recipe library shipped with the package.
LIBRARY_DIR = Path(__file__).parent / "library"

SCOPES: tuple[str, ...] = ("all", "production", "development", "test")


def _default_scope_files() -> dict[str, str]:
    return {scope: f"config/environments/{scope}.conf" for scope in SCOPES}


class InstallConfig(BaseModel):
    """Settings for the post-recipe install/build step."""

    ecosystem: str = Field(
        default="bundler", description="Manifest format and installer: 'bundler' or 'pip'"
    )
    install_command: list[str] | None = Field(
        default=None, description="Override the ecosystem's default installer command"
    )
    format_command: list[str] | None = Field(
        default=None, description="Formatter run after install; None uses the ecosystem default"
    )
    run_formatter: bool = Field(default=True)
    skip_install: bool = Field(default=False)
    timeout: int = Field(default=600, ge=10, description="Installer timeout in seconds")

    @field_validator("ecosystem")
    @classmethod
    def _known_ecosystem(cls, value: str) -> str:
        if value not in ("bundler", "pip"):
            raise ValueError(f"Unknown ecosystem: {value!r} (expected 'bundler' or 'pip')")
        return value


class Config(BaseModel):
    """Global recipekit configuration.

    Holds the target directory, the recipe and template search paths, the
    environment scope surfaces and the install settings.  Instances are
    typically created once by the CLI entry point and then passed to the
    :class:`~recipekit.scaffolder.executor.Executor`.
    """

    target_dir: Path = Field(default=Path("."))
    recipe_dirs: list[Path] = Field(
        default_factory=list,
        description="Extra recipe roots, searched before the bundled library",
    )
    template_dirs: list[Path] = Field(
        default_factory=list,
        description="Extra file roots for copy sources, searched before bundled files",
    )
    use_library: bool = Field(default=True, description="Include the bundled recipe library")
    scope_files: dict[str, str] = Field(default_factory=_default_scope_files)
    shell_timeout: int = Field(default=300, ge=1)
    quiet: bool = Field(default=False)
    install: InstallConfig = Field(default_factory=InstallConfig)

    @field_validator("scope_files")
    @classmethod
    def _all_scopes_present(cls, value: dict[str, str]) -> dict[str, str]:
        missing = [s for s in SCOPES if s not in value]
        if missing:
            raise ValueError(f"scope_files is missing scopes: {', '.join(missing)}")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_name(self) -> str:
        """Name of the generated project, taken from the target directory."""
        return self.target_dir.resolve().name

    @property
    def recipe_search_path(self) -> list[Path]:
        """Recipe roots in lookup order."""
        paths = list(self.recipe_dirs)
        if self.use_library:
            paths.append(LIBRARY_DIR / "recipes")
        return paths

    @property
    def template_search_path(self) -> list[Path]:
        """Copy-source roots in lookup order (project templates first)."""
        paths = list(self.template_dirs)
        if self.use_library:
            paths.append(LIBRARY_DIR / "files")
        return paths

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            RECIPEKIT_RECIPE_PATH, RECIPEKIT_TEMPLATE_PATH (``os.pathsep``
            separated), RECIPEKIT_ECOSYSTEM, RECIPEKIT_SKIP_INSTALL,
            RECIPEKIT_INSTALL_TIMEOUT, RECIPEKIT_SHELL_TIMEOUT.

        Keyword arguments override the environment.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("RECIPEKIT_RECIPE_PATH"):
            kwargs["recipe_dirs"] = _split_paths(os.environ["RECIPEKIT_RECIPE_PATH"])
        if os.environ.get("RECIPEKIT_TEMPLATE_PATH"):
            kwargs["template_dirs"] = _split_paths(os.environ["RECIPEKIT_TEMPLATE_PATH"])
        if os.environ.get("RECIPEKIT_SHELL_TIMEOUT"):
            kwargs["shell_timeout"] = int(os.environ["RECIPEKIT_SHELL_TIMEOUT"])

        install_kwargs: dict[str, Any] = {}
        if os.environ.get("RECIPEKIT_ECOSYSTEM"):
            install_kwargs["ecosystem"] = os.environ["RECIPEKIT_ECOSYSTEM"]
        if os.environ.get("RECIPEKIT_SKIP_INSTALL"):
            install_kwargs["skip_install"] = os.environ["RECIPEKIT_SKIP_INSTALL"].lower() in (
                "1", "true", "yes",
            )
        if os.environ.get("RECIPEKIT_INSTALL_TIMEOUT"):
            install_kwargs["timeout"] = int(os.environ["RECIPEKIT_INSTALL_TIMEOUT"])

        install_overrides = overrides.pop("install", None)
        if isinstance(install_overrides, dict):
            install_kwargs.update(install_overrides)
        kwargs["install"] = InstallConfig(**install_kwargs)
        kwargs.update(overrides)
        return cls(**kwargs)


def _split_paths(value: str) -> list[Path]:
    return [Path(p) for p in value.split(os.pathsep) if p.strip()]
