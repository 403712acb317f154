"""Tests for the install driver and manifest writers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from recipekit.config import InstallConfig
from recipekit.errors import CommandFailedError, InstallFailedError, RegistryClosedError
from recipekit.registry import Dependency, DependencyRegistry
from recipekit.scaffolder.installer import (
    InstallDriver,
    write_gemfile,
    write_requirements,
)
from recipekit.scaffolder.operations import RunShellCommand


pytestmark = pytest.mark.unit


def _registry(*deps: tuple[str, str, str]) -> DependencyRegistry:
    registry = DependencyRegistry()
    for name, constraint, group in deps:
        registry.register(name, constraint, group)
    return registry


# ---------------------------------------------------------------------------
# Gemfile
# ---------------------------------------------------------------------------


class TestWriteGemfile:
    def test_appends_runtime_and_grouped_gems(self, tmp_path: Path):
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text('source "https://rubygems.org"\n\ngem "rails"\n')
        deps = [
            Dependency(name="pagy", constraint="~> 9.0"),
            Dependency(name="rubocop", group="development"),
            Dependency(name="rspec-rails", group="development, test"),
        ]
        assert write_gemfile(tmp_path, deps) == [gemfile]

        content = gemfile.read_text()
        assert 'gem "pagy", "~> 9.0"' in content
        assert "group :development do\n  gem \"rubocop\"\nend" in content
        assert "group :development, :test do\n  gem \"rspec-rails\"\nend" in content
        assert content.index('gem "rails"') < content.index('gem "pagy"')

    def test_existing_gems_not_repeated(self, tmp_path: Path):
        gemfile = tmp_path / "Gemfile"
        gemfile.write_text("gem 'pg', '~> 1.5'\n")
        assert write_gemfile(tmp_path, [Dependency(name="pg")]) == []
        assert gemfile.read_text() == "gem 'pg', '~> 1.5'\n"

    def test_new_gemfile_gets_source(self, tmp_path: Path):
        write_gemfile(tmp_path, [Dependency(name="jwt")])
        content = (tmp_path / "Gemfile").read_text()
        assert content.startswith('source "https://rubygems.org"')
        assert 'gem "jwt"' in content

    def test_similar_names_not_confused(self, tmp_path: Path):
        (tmp_path / "Gemfile").write_text('gem "rubocop-rails"\n')
        write_gemfile(tmp_path, [Dependency(name="rubocop", group="development")])
        assert 'gem "rubocop"\n' in (tmp_path / "Gemfile").read_text()


# ---------------------------------------------------------------------------
# requirements.txt
# ---------------------------------------------------------------------------


class TestWriteRequirements:
    def test_splits_by_group(self, tmp_path: Path):
        deps = [
            Dependency(name="httpx", constraint=">=0.27"),
            Dependency(name="rich", constraint="13.7.0"),
            Dependency(name="pytest", group="test"),
        ]
        written = write_requirements(tmp_path, deps)
        assert {p.name for p in written} == {"requirements.txt", "requirements-test.txt"}
        assert (tmp_path / "requirements.txt").read_text() == "httpx>=0.27\nrich==13.7.0\n"
        assert (tmp_path / "requirements-test.txt").read_text() == "pytest\n"

    def test_existing_requirement_kept(self, tmp_path: Path):
        (tmp_path / "requirements.txt").write_text("Rich>=12\n")
        assert write_requirements(tmp_path, [Dependency(name="rich", constraint=">=13")]) == []
        assert (tmp_path / "requirements.txt").read_text() == "Rich>=12\n"


# ---------------------------------------------------------------------------
# InstallDriver
# ---------------------------------------------------------------------------


class TestInstallDriver:
    async def test_skip_install_writes_manifest_and_closes_registry(self, tmp_path: Path):
        registry = _registry(("pagy", "", "runtime"))
        driver = InstallDriver(InstallConfig(skip_install=True), quiet=True)
        with patch("recipekit.scaffolder.installer.run_command", new=AsyncMock()) as mock_run:
            result = await driver.run(tmp_path, registry)

        mock_run.assert_not_called()
        assert result.installed is False
        assert [d.name for d in result.dependencies] == ["pagy"]
        assert (tmp_path / "Gemfile").exists()
        assert registry.closed
        with pytest.raises(RegistryClosedError):
            registry.register("late")

    async def test_install_then_deferred_then_format(self, tmp_path: Path):
        registry = _registry(("pundit", "", "runtime"))
        deferred = [RunShellCommand(command="bin/rails generate pundit:install", stage="after_install")]
        driver = InstallDriver(InstallConfig(), quiet=True)
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("recipekit.scaffolder.installer.run_command", new=mock_run):
            result = await driver.run(tmp_path, registry, deferred)

        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [
            ["bundle", "install"],
            "bin/rails generate pundit:install",
            ["bundle", "exec", "rubocop", "-A"],
        ]
        assert all(call.kwargs["cwd"] == tmp_path for call in mock_run.call_args_list)
        assert result.installed is True
        assert result.deferred_run == 1
        assert result.formatted is True

    async def test_install_failure_is_fatal(self, tmp_path: Path):
        driver = InstallDriver(InstallConfig(), quiet=True)
        deferred = [RunShellCommand(command="echo never", stage="after_install")]
        mock_run = AsyncMock(return_value=(5, "", "Could not find gem"))
        with patch("recipekit.scaffolder.installer.run_command", new=mock_run):
            with pytest.raises(InstallFailedError) as exc_info:
                await driver.run(tmp_path, _registry(("nope", "", "runtime")), deferred)

        assert exc_info.value.returncode == 5
        assert "Could not find gem" in str(exc_info.value)
        assert mock_run.call_count == 1
        assert (tmp_path / "Gemfile").exists()

    async def test_deferred_failure_raises(self, tmp_path: Path):
        driver = InstallDriver(InstallConfig(run_formatter=False), quiet=True)
        deferred = [RunShellCommand(command="bin/setup", stage="after_install")]
        mock_run = AsyncMock(side_effect=[(0, "", ""), (1, "", "nope")])
        with patch("recipekit.scaffolder.installer.run_command", new=mock_run):
            with pytest.raises(CommandFailedError):
                await driver.run(tmp_path, DependencyRegistry(), deferred)

    async def test_formatter_failure_only_warns(self, tmp_path: Path):
        driver = InstallDriver(InstallConfig(), quiet=True)
        mock_run = AsyncMock(side_effect=[(0, "", ""), (1, "", "offenses")])
        with patch("recipekit.scaffolder.installer.run_command", new=mock_run):
            result = await driver.run(tmp_path, DependencyRegistry())
        assert result.installed is True
        assert result.formatted is False

    async def test_pip_ecosystem(self, tmp_path: Path):
        driver = InstallDriver(InstallConfig(ecosystem="pip", run_formatter=False), quiet=True)
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("recipekit.scaffolder.installer.run_command", new=mock_run):
            result = await driver.run(tmp_path, _registry(("rich", ">=13", "runtime")))
        assert mock_run.call_args.args[0] == ["pip", "install", "-r", "requirements.txt"]
        assert [p.name for p in result.manifests] == ["requirements.txt"]


class TestCommands:
    def test_install_command_override(self):
        driver = InstallDriver(InstallConfig(install_command=["bundle", "install", "--local"]))
        assert driver.install_command == ["bundle", "install", "--local"]

    def test_format_disabled(self):
        assert InstallDriver(InstallConfig(run_formatter=False)).format_command is None

    def test_empty_format_override_disables(self):
        assert InstallDriver(InstallConfig(format_command=[])).format_command is None

    def test_default_format_per_ecosystem(self):
        assert InstallDriver(InstallConfig(ecosystem="pip")).format_command == ["ruff", "format", "."]
