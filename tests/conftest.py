"""Shared pytest fixtures for the recipekit test suite.

Provides reusable fixtures for:
- Temporary project directories and a minimal Rails-style skeleton
- Template/file roots for copy operations
- Workspaces and execution contexts wired to those directories
- In-memory recipe books built from plain dicts
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from recipekit.config import Config, InstallConfig
from recipekit.params import Params
from recipekit.scaffolder.actions import Workspace
from recipekit.scaffolder.executor import ExecutionContext
from recipekit.scaffolder.recipes import Recipe, RecipeBook


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty target directory for a scaffolded project."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def rails_skeleton(tmp_path: Path) -> Path:
    """A minimal project tree resembling a fresh ``rails new --api`` output."""
    root = tmp_path / "my-api"
    (root / "config").mkdir(parents=True)
    (root / "Gemfile").write_text(
        textwrap.dedent(
            """\
            source "https://rubygems.org"

            gem "rails", "~> 8.1.0"
            gem "sqlite3", ">= 2.1"
            gem "puma", ">= 5.0"
            """
        ),
        encoding="utf-8",
    )
    (root / "config" / "routes.rb").write_text(
        "Rails.application.routes.draw do\nend\n", encoding="utf-8"
    )
    (root / "config" / "application.rb").write_text(
        textwrap.dedent(
            """\
            require_relative "boot"

            module MyApi
              class Application < Rails::Application
                config.load_defaults 8.1
                config.api_only = true
              end
            end
            """
        ),
        encoding="utf-8",
    )
    (root / "config" / "database.yml").write_text("default: sqlite\n", encoding="utf-8")
    (root / "Dockerfile").write_text("FROM ruby\n", encoding="utf-8")
    (root / ".gitignore").write_text("/tmp\n", encoding="utf-8")
    return root


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """A file root with a plain file, a Jinja2 template and a directory."""
    root = tmp_path / "templates"
    (root / "docs" / "nested").mkdir(parents=True)
    (root / "plain.txt").write_text("plain content\n", encoding="utf-8")
    (root / "greeting.txt.j2").write_text(
        "Hello {{ project_name }}! db={{ params.get('db', 'pg') }}\n", encoding="utf-8"
    )
    (root / "docs" / "README.md").write_text("# Docs\n", encoding="utf-8")
    (root / "docs" / "nested" / "title.txt.j2").write_text(
        "{{ project_name | pascal_case }}\n", encoding="utf-8"
    )
    return root


# ---------------------------------------------------------------------------
# Engine objects
# ---------------------------------------------------------------------------

@pytest.fixture
def workspace(tmp_project_dir: Path, templates_dir: Path) -> Workspace:
    """A quiet Workspace rooted at ``tmp_project_dir``."""
    return Workspace(
        tmp_project_dir,
        search_paths=[templates_dir],
        context={"project_name": "test-project", "params": Params()},
        quiet=True,
    )


@pytest.fixture
def config(tmp_project_dir: Path, templates_dir: Path) -> Config:
    """Config pointing at the temp project, without the bundled library."""
    return Config(
        target_dir=tmp_project_dir,
        template_dirs=[templates_dir],
        use_library=False,
        quiet=True,
        install=InstallConfig(skip_install=True),
    )


@pytest.fixture
def make_context(config: Config):
    """Factory for an ExecutionContext with optional parameters."""

    def _make(params: dict[str, Any] | None = None) -> ExecutionContext:
        return ExecutionContext.from_config(config, Params(params or {}))

    return _make


def build_book(definitions: dict[str, list[dict[str, Any]]]) -> RecipeBook:
    """Build a RecipeBook from ``{name: [step, ...]}``."""
    return RecipeBook(Recipe(name=name, steps=tuple(steps)) for name, steps in definitions.items())


@pytest.fixture
def book_factory():
    """Expose :func:`build_book` to tests."""
    return build_book


@pytest.fixture
def recipe_dir(tmp_path: Path) -> Path:
    """A recipe root on disk with a small tree of YAML recipes."""
    root = tmp_path / "recipes"
    (root / "config").mkdir(parents=True)
    (root / "base.yaml").write_text(
        textwrap.dedent(
            """\
            description: Base project
            steps:
              - op: register_dependency
                name: rake
                constraint: "~> 13.0"
                group: development
              - op: create_file
                path: README.md
                content: "# {{ project_name }}\\n"
                render: true
              - op: recipe
                name: config/log
            """
        ),
        encoding="utf-8",
    )
    (root / "config" / "log.yaml").write_text(
        textwrap.dedent(
            """\
            description: Logging
            steps:
              - op: append_config_block
                scope: production
                text: log_level = info
              - op: append_config_block
                scope: test
                text: log_level = warn
            """
        ),
        encoding="utf-8",
    )
    return root
