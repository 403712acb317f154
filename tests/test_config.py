"""Unit tests for Config and InstallConfig (recipekit.config).

Tests cover:
- InstallConfig defaults and validation
- Config defaults, scope surfaces, derived search paths
- save/load round trip
- from_env overrides
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from recipekit.config import LIBRARY_DIR, SCOPES, Config, InstallConfig


# ---------------------------------------------------------------------------
# InstallConfig
# ---------------------------------------------------------------------------


class TestInstallConfig:
    @pytest.mark.unit
    def test_defaults(self):
        cfg = InstallConfig()
        assert cfg.ecosystem == "bundler"
        assert cfg.install_command is None
        assert cfg.run_formatter is True
        assert cfg.skip_install is False
        assert cfg.timeout == 600

    @pytest.mark.unit
    def test_unknown_ecosystem_rejected(self):
        with pytest.raises(ValidationError):
            InstallConfig(ecosystem="npm")

    @pytest.mark.unit
    def test_timeout_below_minimum_rejected(self):
        with pytest.raises(ValidationError):
            InstallConfig(timeout=5)


# ---------------------------------------------------------------------------
# Config defaults & derived paths
# ---------------------------------------------------------------------------


class TestConfigDefaults:
    @pytest.mark.unit
    def test_defaults(self, tmp_path: Path):
        config = Config(target_dir=tmp_path / "shop")
        assert config.use_library is True
        assert config.shell_timeout == 300
        assert config.quiet is False
        assert isinstance(config.install, InstallConfig)

    @pytest.mark.unit
    def test_project_name_from_target(self, tmp_path: Path):
        assert Config(target_dir=tmp_path / "my-api").project_name == "my-api"

    @pytest.mark.unit
    def test_default_scope_files(self, tmp_path: Path):
        config = Config(target_dir=tmp_path)
        assert set(config.scope_files) == set(SCOPES)
        assert config.scope_files["production"] == "config/environments/production.conf"

    @pytest.mark.unit
    def test_incomplete_scope_files_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="missing scopes"):
            Config(target_dir=tmp_path, scope_files={"all": "a.conf"})

    @pytest.mark.unit
    def test_search_paths_put_project_dirs_first(self, tmp_path: Path):
        config = Config(
            target_dir=tmp_path,
            recipe_dirs=[tmp_path / "recipes"],
            template_dirs=[tmp_path / "files"],
        )
        assert config.recipe_search_path == [tmp_path / "recipes", LIBRARY_DIR / "recipes"]
        assert config.template_search_path == [tmp_path / "files", LIBRARY_DIR / "files"]

    @pytest.mark.unit
    def test_library_can_be_disabled(self, tmp_path: Path):
        config = Config(target_dir=tmp_path, use_library=False)
        assert config.recipe_search_path == []
        assert config.template_search_path == []

    @pytest.mark.unit
    def test_shell_timeout_must_be_positive(self, tmp_path: Path):
        with pytest.raises(ValidationError):
            Config(target_dir=tmp_path, shell_timeout=0)


# ---------------------------------------------------------------------------
# Config.save / Config.load
# ---------------------------------------------------------------------------


class TestConfigSaveLoad:
    @pytest.mark.unit
    def test_load_roundtrip(self, tmp_path: Path):
        config = Config(
            target_dir=tmp_path / "app",
            recipe_dirs=[tmp_path / "recipes"],
            install=InstallConfig(ecosystem="pip", skip_install=True),
        )
        saved = config.save(tmp_path / "out" / "recipekit.json")
        assert saved.exists()

        loaded = Config.load(saved)
        assert loaded.target_dir == tmp_path / "app"
        assert loaded.recipe_dirs == [tmp_path / "recipes"]
        assert loaded.install.ecosystem == "pip"
        assert loaded.install.skip_install is True

    @pytest.mark.unit
    def test_saved_file_is_json(self, tmp_path: Path):
        path = Config(target_dir=tmp_path).save(tmp_path / "c.json")
        data = json.loads(path.read_text())
        assert data["install"]["ecosystem"] == "bundler"


# ---------------------------------------------------------------------------
# Config.from_env
# ---------------------------------------------------------------------------


class TestConfigFromEnv:
    @pytest.mark.unit
    def test_reads_environment(self, tmp_path: Path):
        env = {
            "RECIPEKIT_RECIPE_PATH": os.pathsep.join([str(tmp_path / "a"), str(tmp_path / "b")]),
            "RECIPEKIT_ECOSYSTEM": "pip",
            "RECIPEKIT_SKIP_INSTALL": "true",
            "RECIPEKIT_INSTALL_TIMEOUT": "900",
            "RECIPEKIT_SHELL_TIMEOUT": "30",
        }
        with patch.dict(os.environ, env, clear=False):
            config = Config.from_env(target_dir=tmp_path)
        assert config.recipe_dirs == [tmp_path / "a", tmp_path / "b"]
        assert config.install.ecosystem == "pip"
        assert config.install.skip_install is True
        assert config.install.timeout == 900
        assert config.shell_timeout == 30

    @pytest.mark.unit
    def test_overrides_beat_environment(self, tmp_path: Path):
        with patch.dict(os.environ, {"RECIPEKIT_ECOSYSTEM": "pip"}, clear=False):
            config = Config.from_env(
                target_dir=tmp_path, quiet=True, install={"ecosystem": "bundler"}
            )
        assert config.install.ecosystem == "bundler"
        assert config.quiet is True

    @pytest.mark.unit
    def test_skip_install_false_values(self, tmp_path: Path):
        with patch.dict(os.environ, {"RECIPEKIT_SKIP_INSTALL": "no"}, clear=False):
            config = Config.from_env(target_dir=tmp_path)
        assert config.install.skip_install is False
